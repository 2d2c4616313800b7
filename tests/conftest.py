import pytest

PROXY_CONFIG = """\
# Server settings
host: ""
port: 8317 # listen port

tls:
  enable: false
  cert: ""
  key: ""

remote-management:
  allow-remote: false
  secret-key: "s3cr#t"

# Authentication directory
auth-dir: "~/.cli-proxy-api"

api-keys:
  - "key-one"
  - 'key-two'

debug: false
proxy-url: ""

routing:
  strategy: "round-robin"

openai-compatibility:
  - name: "openrouter"
    base-url: "https://openrouter.ai/api/v1"
    api-key-entries:
      - api-key: "sk-or-1"
    models:
      - name: "moonshotai/kimi-k2:free"
        alias: "kimi-k2"
  - name: local
    base-url: "http://127.0.0.1:8080/v1" # llama.cpp

# Global OAuth model name mappings (per channel)
oauth-model-mappings:
  gemini-cli:
    - name: "gemini-2.5-pro"
      alias: "g2.5p"
      fork: true
  Gemini-CLI:
    - name: "dup"
"""


@pytest.fixture
def proxy_config_text():
    """A hand-edited proxy configuration with comments, quoting styles and nested lists."""
    return PROXY_CONFIG


@pytest.fixture
def key_order_options():
    from yamlsplice.models import EngineOptions

    return EngineOptions(
        key_order={
            "": ["host", "port", "tls", "remote-management", "auth-dir", "api-keys", "debug",
                 "logging-to-file", "proxy-url", "request-retry", "routing"],
            "tls": ["enable", "cert", "key"],
            "routing": ["strategy"],
        }
    )


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    import structlog

    structlog.reset_defaults()
