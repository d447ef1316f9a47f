from .models import LineType, LineMetrics, LineRecord, ApplyResult, ValidationError, Severity
from .errors import PatchError, PatchValidationError, PatchSizeError, PatchApplyError, ConfigError
from .normalizer import NormalizationPolicy, policy_for_path
from .parser import PatchLineClassifier
from .linker import LineLinker
from .applier import PatchApplier
from .diffgen import DiffGenerator
from .validator import BalanceValidator
from .blocks import DiffBlockApplier
from .backends import PatchEngine, LinePatchEngine, DmpPatchEngine, engine_for
from .selftests import FuzzyPatchSelfTests

__all__ = [
    "LineType","LineMetrics","LineRecord","ApplyResult","ValidationError","Severity",
    "PatchError","PatchValidationError","PatchSizeError","PatchApplyError","ConfigError",
    "NormalizationPolicy","policy_for_path","PatchLineClassifier","LineLinker",
    "PatchApplier","DiffGenerator","BalanceValidator","DiffBlockApplier",
    "PatchEngine","LinePatchEngine","DmpPatchEngine","engine_for","FuzzyPatchSelfTests",
]
