"""Shared fixtures: in-memory images and a scripted analyst."""

import io
import asyncio

import pytest
from PIL import Image

from situationship import UploadItem


def make_image_bytes(fmt: str = "PNG", size=(40, 30), mode: str = "RGB", color=(200, 30, 90)) -> bytes:
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_item(label: str) -> UploadItem:
    return UploadItem(data=label.encode(), media_type="image/png", filename=label)


class FakeAnalyst:
    """Records calls instead of talking to the API."""

    def __init__(self, delays=None, fail_on=None, merge_error=None):
        self.model = "fake-model"
        self.delays = delays or {}
        self.fail_on = fail_on
        self.merge_error = merge_error
        self.analyzed = []
        self.merged = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    async def analyze_group(self, group):
        index = len(self.analyzed)
        self.analyzed.append([item.filename for item in group])
        await asyncio.sleep(self.delays.get(index, 0))
        if self.fail_on is not None and index == self.fail_on:
            raise RuntimeError(f"group {index} exploded")
        return "analysis of " + "+".join(item.filename for item in group)

    async def merge_results(self, partials):
        self.merged.append(list(partials))
        if self.merge_error is not None:
            raise self.merge_error
        return "### Relationship Analysis\n\nTL;DR:\n" + " | ".join(partials)


@pytest.fixture
def fake_analyst():
    return FakeAnalyst()
