"""Structure outline engine.

Key Components:

- scan_annotations: TODO/FIXME/NOTE/XXX/HACK comment tags as outline nodes
- classify_symbols: provider symbols -> typed outline nodes (with promotion rules)
- merge_outline: symbols + annotations -> one ordered root list
- OutlineController: generation-gated synchronization of the active buffer's outline
- SymbolProvider: protocol for symbol sources (DefaultSymbolProvider built in)
- OutlineSink: protocol for snapshot consumers (SnapshotStore built in)

Architecture:
- All models are frozen pydantic v2 models; stages build new nodes
- Scanner, classifier and merger are pure functions
- The controller exclusively owns generations and the current snapshot
"""

from .annotations import scan_annotations
from .classifier import classify_symbols, coerce_symbols
from .config import DroppedChildrenPolicy, OutlineConfig
from .controller import OutlineController, OutlineState, extract_outline
from .events import BufferEvent, BufferEvents, BufferEventType, Subscription
from .exceptions import ProviderUnavailableError, UnsupportedSourceError
from .languages import LanguagePolicy, is_supported, supported_languages
from .merger import merge_outline
from .models import (
    ExtractionRequest,
    NodeKind,
    OutlineSnapshot,
    Position,
    ProviderSymbol,
    Range,
    StructureNode,
    TextBuffer,
)
from .providers import (
    DefaultSymbolProvider,
    PythonSymbolProvider,
    SymbolProvider,
    TreeSitterSymbolProvider,
)
from .sinks import OutlineSink, SnapshotStore

__all__ = [
    # Models
    "ExtractionRequest",
    "NodeKind",
    "OutlineSnapshot",
    "Position",
    "ProviderSymbol",
    "Range",
    "StructureNode",
    "TextBuffer",
    # Pipeline
    "scan_annotations",
    "classify_symbols",
    "coerce_symbols",
    "merge_outline",
    "extract_outline",
    # Synchronization
    "OutlineController",
    "OutlineState",
    "BufferEvent",
    "BufferEvents",
    "BufferEventType",
    "Subscription",
    # Collaborators
    "SymbolProvider",
    "DefaultSymbolProvider",
    "PythonSymbolProvider",
    "TreeSitterSymbolProvider",
    "OutlineSink",
    "SnapshotStore",
    # Configuration
    "OutlineConfig",
    "DroppedChildrenPolicy",
    "LanguagePolicy",
    "is_supported",
    "supported_languages",
    # Errors
    "ProviderUnavailableError",
    "UnsupportedSourceError",
]
