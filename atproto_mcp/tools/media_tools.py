"""
Media Tools — posts with attachments.

Tools:
  post_with_image    — one image
  upload_media       — local pre-flight check of a media file (type, size)
  post_with_gallery  — 1–4 images; the CLI attaches only the first
  post_with_video    — MP4 sent through the CLI's --image attachment path

The CLI has a single attachment flag, so gallery and video posts are
capability-limited. The result payload says so in a `note`.
"""

from pathlib import Path
from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.config import Config
from atproto_mcp.errors import ValidationError
from atproto_mcp.tools import actions
from atproto_mcp.tools.validation import require_list, require_str

IMAGE_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
VIDEO_TYPES = {".mp4": "video/mp4"}


def check_media(filepath: str) -> Dict[str, Any]:
    """Validate a local media file against Bluesky's upload limits."""
    path = Path(filepath).expanduser()
    if not path.is_file():
        raise ValidationError(f"Media file not found: {filepath}")

    suffix = path.suffix.lower()
    if suffix in IMAGE_TYPES:
        kind, mime, limit = "image", IMAGE_TYPES[suffix], Config.MAX_IMAGE_BYTES
    elif suffix in VIDEO_TYPES:
        kind, mime, limit = "video", VIDEO_TYPES[suffix], Config.MAX_VIDEO_BYTES
    else:
        raise ValidationError(
            f"Unsupported media type '{suffix or path.name}'. "
            "Images: JPEG/PNG/GIF/WebP; videos: MP4"
        )

    size = path.stat().st_size
    if size > limit:
        raise ValidationError(
            f"{kind.capitalize()} too large: {size} bytes (max {limit} bytes)"
        )
    return {"path": str(path), "kind": kind, "mimeType": mime, "size": size}


async def _post_with_image(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    text = require_str(args, "text")
    image = require_str(args, "image")
    output = await actions.create_post(ctx.runner, text, image)
    return {"success": True, "message": output}


async def _upload_media(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    info = check_media(require_str(args, "filepath"))
    return {
        "success": True,
        "media": info,
        "note": "Blob upload happens when posting; attach this file with post_create or post_with_image",
    }


async def _post_with_gallery(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    text = require_str(args, "text")
    images = require_list(args, "images")
    if not images:
        raise ValidationError("At least one image is required")
    if len(images) > Config.MAX_GALLERY_IMAGES:
        raise ValidationError(f"Maximum {Config.MAX_GALLERY_IMAGES} images allowed in a gallery")

    output = await actions.create_post(ctx.runner, text, images[0])
    result: Dict[str, Any] = {"success": True, "message": output, "attached": [images[0]]}
    if len(images) > 1:
        result["note"] = (
            f"Posted with the first image only; the other {len(images) - 1} "
            f"of {len(images)} images were not attached (the CLI supports one attachment per post)."
        )
        result["skipped"] = images[1:]
    return result


async def _post_with_video(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    text = require_str(args, "text")
    video = require_str(args, "video")
    output = await actions.create_post(ctx.runner, text, video)
    return {
        "success": True,
        "message": output,
        "note": "Video file sent as a media attachment (no dedicated video embed yet)",
    }


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="post_with_image",
        description="Create a post with an image attachment",
        input_schema={
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "The post text content"},
                "image": {
                    "type": "string",
                    "description": "Path to the image file (JPEG, PNG, GIF, or WebP)",
                },
            },
            "required": ["text", "image"],
        },
        handler=_post_with_image,
    ),
    ToolDescriptor(
        name="upload_media",
        description="Check a media file (image or video) against Bluesky upload limits before posting",
        input_schema={
            "type": "object",
            "properties": {
                "filepath": {
                    "type": "string",
                    "description": "Path to media file (images: JPEG/PNG/GIF/WebP, max 1MB; videos: MP4, max 50MB)",
                },
            },
            "required": ["filepath"],
        },
        handler=_upload_media,
    ),
    ToolDescriptor(
        name="post_with_gallery",
        description="Create a post with multiple images (gallery). Currently attaches the first image only.",
        input_schema={
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "The post text content"},
                "images": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Array of paths to image files (1 to 4 images)",
                },
            },
            "required": ["text", "images"],
        },
        handler=_post_with_gallery,
    ),
    ToolDescriptor(
        name="post_with_video",
        description="Create a post with a video attachment",
        input_schema={
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "The post text content"},
                "video": {"type": "string", "description": "Path to MP4 video file (max 50MB)"},
            },
            "required": ["text", "video"],
        },
        handler=_post_with_video,
    ),
]
