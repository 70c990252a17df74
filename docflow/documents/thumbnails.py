import io

from PIL import Image

from docflow.logging.logger import Log

THUMBNAIL_MAX_SIZE = 200


def make_thumbnail(image_bytes: bytes, max_size: int = THUMBNAIL_MAX_SIZE) -> bytes | None:
    """Render a PNG thumbnail no larger than ``max_size`` on its long side.

    Returns None when the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.thumbnail((max_size, max_size))
            if img.mode not in ("RGB", "RGBA", "L", "P"):
                img = img.convert("RGB")
            buf = io.BytesIO()
            img.save(buf, format="PNG")
            return buf.getvalue()
    except Exception as exc:
        Log.warning(f"Thumbnail generation failed: {exc}")
        return None
