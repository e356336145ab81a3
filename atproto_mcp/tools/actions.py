"""
Single-item CLI actions shared by the per-item tools and the batch tools.

Each returns the CLI's stdout or raises CommandFailure.
"""

from typing import Optional

from atproto_mcp.runner import CommandRunner


async def create_post(runner: CommandRunner, text: str, image: Optional[str] = None) -> str:
    media = ["--image", image] if image else []
    return await runner.run_cli("post", *media, text)


async def follow(runner: CommandRunner, handle: str) -> str:
    return await runner.run_cli("follow", handle)


async def unfollow(runner: CommandRunner, handle: str) -> str:
    return await runner.run_cli("unfollow", handle)


async def like(runner: CommandRunner, uri: str) -> str:
    return await runner.run_cli("like", uri)
