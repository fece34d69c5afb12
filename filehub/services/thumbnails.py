"""Thumbnail URL derivation by MIME category.

Images, videos and PDFs served through a transforming media CDN (URLs with an
``/upload/`` segment) get a resize transformation injected into the path. Any
other URL is returned unchanged. Documents that cannot be rendered get an
inline SVG placeholder labelled with the file type.
"""

from urllib.parse import quote

_UPLOAD_SEGMENT = "/upload/"

_MIME_LABELS = {
    "application/pdf": "PDF",
    "application/msword": "DOC",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
    "application/vnd.ms-excel": "XLS",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "XLSX",
    "application/vnd.ms-powerpoint": "PPT",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "PPTX",
    "text/plain": "TXT",
    "text/html": "HTML",
    "text/css": "CSS",
    "text/javascript": "JS",
    "application/json": "JSON",
    "application/xml": "XML",
    "text/csv": "CSV",
}

_PLACEHOLDER_SVG = (
    '<svg width="300" height="300" viewBox="0 0 300 300" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="300" height="300" fill="{color}" rx="8"/>'
    '<rect x="40" y="60" width="220" height="180" fill="white" rx="4"/>'
    '<text x="150" y="180" text-anchor="middle" font-family="Arial, sans-serif" '
    'font-size="24" font-weight="bold" fill="{color}">{label}</text>'
    '<rect x="60" y="80" width="180" height="8" fill="#f3f4f6" rx="2"/>'
    '<rect x="60" y="100" width="160" height="8" fill="#f3f4f6" rx="2"/>'
    '<rect x="60" y="120" width="140" height="8" fill="#f3f4f6" rx="2"/>'
    "</svg>"
)


def _inject(url: str, transformation: str) -> str:
    if _UPLOAD_SEGMENT not in url:
        return url
    return url.replace(_UPLOAD_SEGMENT, f"{_UPLOAD_SEGMENT}{transformation}/", 1)


def image_thumbnail_url(url: str, width: int = 300, height: int = 300) -> str:
    return _inject(url, f"c_fill,w_{width},h_{height},f_auto,q_auto")


def video_thumbnail_url(url: str) -> str:
    """Frame two seconds in, as a JPEG."""
    return _inject(url, "c_fill,w_300,h_300,f_jpg,so_2")


def pdf_thumbnail_url(url: str) -> str:
    """First page rendered as a JPEG."""
    if ".pdf" not in url:
        return url
    return _inject(url, "c_fill,w_300,h_300,f_jpg,pg_1")


def _type_color(mime_type: str) -> str:
    if "pdf" in mime_type:
        return "#dc2626"
    if "word" in mime_type or "document" in mime_type:
        return "#2563eb"
    if "excel" in mime_type or "spreadsheet" in mime_type:
        return "#059669"
    if "powerpoint" in mime_type or "presentation" in mime_type:
        return "#ea580c"
    if "text" in mime_type:
        return "#6b7280"
    if "json" in mime_type or "javascript" in mime_type:
        return "#fbbf24"
    return "#6366f1"


def document_placeholder(mime_type: str) -> str:
    """Return an ``image/svg+xml`` data URL showing the file-type label."""
    svg = _PLACEHOLDER_SVG.format(
        color=_type_color(mime_type),
        label=_MIME_LABELS.get(mime_type, "FILE"),
    )
    return "data:image/svg+xml;charset=utf-8," + quote(svg, safe="")


def thumbnail_url(blob_url: str, mime_type: str) -> str:
    """Pick the thumbnail strategy for a file's MIME category."""
    if mime_type.startswith("image/"):
        return image_thumbnail_url(blob_url)
    if mime_type.startswith("video/"):
        return video_thumbnail_url(blob_url)
    if mime_type == "application/pdf" and _UPLOAD_SEGMENT in blob_url:
        return pdf_thumbnail_url(blob_url)
    return document_placeholder(mime_type)
