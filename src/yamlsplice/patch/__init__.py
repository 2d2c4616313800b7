from yamlsplice.patch.engine import PatchEngine, apply_patches
from yamlsplice.patch.navigator import KeyMatch, PathNavigator, Scope, block_end

__all__ = ["PatchEngine", "apply_patches", "KeyMatch", "PathNavigator", "Scope", "block_end"]
