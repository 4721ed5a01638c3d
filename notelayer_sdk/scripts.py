"""
Well-known note scripts and transaction scripts.

Scripts are opaque to this package: a note script is identified by its
root, which is derived from its canonical name so that every client agrees
on it without compiling anything.
"""
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from .felt import Word, bytes_to_elements, hash_elements
from .note import NoteScript

logger = logging.getLogger(__name__)

P2ID = "P2ID"
P2IDE = "P2IDE"
MINT = "MINT"

WELL_KNOWN_SCRIPTS = (P2ID, P2IDE, MINT)


def script_root(name: str) -> Word:
    """Root of a well-known script, derived from its canonical name."""
    return hash_elements(bytes_to_elements(f"note_script::{name}".encode("utf-8")))


class ScriptRegistry:
    """Lookup of note scripts by symbolic name."""

    def __init__(self, scripts: Optional[List[NoteScript]] = None):
        self._scripts: Dict[str, NoteScript] = {}
        self._lock = threading.RLock()
        for script in scripts or []:
            self.register(script)

    def register(self, script: NoteScript) -> None:
        """
        Add a script to the registry.

        Raises:
            ValueError: If a different script is already registered under the name
        """
        with self._lock:
            existing = self._scripts.get(script.name)
            if existing is not None and existing != script:
                raise ValueError(f"Script {script.name} is already registered with another root")
            self._scripts[script.name] = script

    def get(self, name: str) -> NoteScript:
        """
        Get a script by name.

        Raises:
            KeyError: If no script is registered under the name
        """
        with self._lock:
            try:
                return self._scripts[name]
            except KeyError:
                raise KeyError(
                    f"Unknown note script '{name}'. Available: {', '.join(sorted(self._scripts))}"
                )

    def name_of(self, root: Word) -> Optional[str]:
        """Return the name of the script with the given root, if registered."""
        with self._lock:
            for script in self._scripts.values():
                if script.root == root:
                    return script.name
        return None

    def __contains__(self, name: str) -> bool:
        return name in self._scripts


_default_registry: Optional[ScriptRegistry] = None
_default_registry_lock = threading.Lock()


def default_registry() -> ScriptRegistry:
    """Get the shared registry of well-known scripts."""
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = ScriptRegistry(
                [NoteScript(name=name, root=script_root(name)) for name in WELL_KNOWN_SCRIPTS]
            )
        return _default_registry


class TransactionScript(BaseModel):
    """Custom script executed by the account issuing a transaction."""
    model_config = ConfigDict(frozen=True)

    source: str

    @classmethod
    def from_source(cls, source: str) -> "TransactionScript":
        if not source.strip():
            raise ValueError("Transaction script source is empty")
        return cls(source=source)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TransactionScript":
        source = Path(path).read_text(encoding="utf-8")
        logger.debug(f"Loaded transaction script from {path} ({len(source)} chars)")
        return cls.from_source(source)

    @property
    def root(self) -> Word:
        return hash_elements(bytes_to_elements(self.source.encode("utf-8")))
