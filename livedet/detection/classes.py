"""Class name table loaded from a names file."""

from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union

from ..errors import ModelLoadError, UnknownClassId


class ClassNameTable:
    """Ordered, immutable sequence of class labels indexed by class id."""

    def __init__(self, names: Iterable[str]):
        self._names: Tuple[str, ...] = tuple(names)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ClassNameTable":
        """Load class names, one per line; line order defines the class id.

        Raises:
            ModelLoadError: If the file cannot be read or is not UTF-8 text.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ModelLoadError(f"Cannot read class names from {path}: {e}") from e
        return cls(line.strip() for line in text.splitlines())

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def name_for(self, class_id: int) -> str:
        """Return the label for a class id.

        Raises:
            UnknownClassId: If the id is outside the table.
        """
        if not 0 <= class_id < len(self._names):
            raise UnknownClassId(class_id, len(self._names))
        return self._names[class_id]

    def __len__(self) -> int:
        return len(self._names)

    def __getitem__(self, class_id: int) -> str:
        return self.name_for(class_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __repr__(self) -> str:
        return f"ClassNameTable({len(self._names)} names)"
