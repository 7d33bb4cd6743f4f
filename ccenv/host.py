from pathlib import Path
from typing import Optional, Union


class LocalFileAccess:
    """Host file-access capability backed by the local filesystem.

    A missing file reads as ``None`` rather than raising.
    """

    def get_home_dir(self) -> Path:
        return Path.home()

    def read_file(self, file_path: Union[str, Path]) -> Optional[str]:
        path = Path(file_path)
        if not path.exists():
            return None

        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def write_file(self, file_path: Union[str, Path], content: str) -> str:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)

        return f"File written: {path}"
