# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from pathlib import Path

from mdtranslate.workflow.interfaces import DocumentStore


class FileDocumentStore(DocumentStore):
    """
    Documents identified by their file path.
    Translations overwrite the source file unless output_dir is given.
    Line endings are read and written untouched.
    """

    def __init__(self, output_dir: Path | str | None = None, encoding: str = "utf-8"):
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.encoding = encoding
        self._written: dict[Path, str] = {}

    def read(self, identifier: str) -> str:
        with open(identifier, encoding=self.encoding, newline="") as f:
            return f.read()

    def target_path(self, identifier: str) -> Path:
        """
        Where the translation of identifier goes. Under output_dir the path relative to the
        working directory is kept, files outside of it keep only their name.
        """
        source = Path(identifier)
        if self.output_dir is None:
            return source
        try:
            relative = source.resolve().relative_to(Path.cwd().resolve())
        except ValueError:
            relative = Path(source.name)
        return self.output_dir / relative

    def write(self, identifier: str, content: str) -> str:
        target = self.target_path(identifier)
        owner = self._written.setdefault(target.resolve(), identifier)
        if owner != identifier:
            raise FileExistsError(f"{target} was already written for {owner}")
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding=self.encoding, newline="") as f:
            f.write(content)
        return str(target)

    def exists(self, identifier: str) -> bool:
        return Path(identifier).is_file()
