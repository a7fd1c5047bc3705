from pathlib import Path
from io import BytesIO
import json


def to_json_bytes(payload: dict) -> BytesIO:
    """Pretty-printed UTF-8 JSON in a rewound buffer. `payload` must already be plain JSON types."""
    text = json.dumps(payload, ensure_ascii=False, indent=2, allow_nan=False)
    return BytesIO(text.encode("utf-8"))


def save_bytes(buf: BytesIO, path: Path) -> Path:
    """Overwrite `path` with the buffer contents."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        f.write(buf.getvalue())
    return path
