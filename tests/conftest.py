from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image


class ScriptedGenerator:
    """Stands in for a numpy Generator, returning fixed draws in order."""

    def __init__(self, draws: list[float]) -> None:
        self.draws = list(draws)

    def random(self) -> float:
        return self.draws.pop(0)


def make_png(path: Path, color: tuple[int, int, int, int], size: tuple[int, int] = (4, 4)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path)
    return path


@pytest.fixture
def rarity() -> list[tuple[str, str]]:
    return [("(common)", "Common"), ("(rare)", "Rare")]


@pytest.fixture
def canvas_format() -> dict[str, int]:
    return {"width": 4, "height": 4}


@pytest.fixture
def layers_path(tmp_path: Path) -> Path:
    bg = tmp_path / "layers" / "bg"
    make_png(bg / "blue(common).png", (0, 0, 255, 255))
    make_png(bg / "red(rare).png", (255, 0, 0, 255))
    return tmp_path / "layers"


@pytest.fixture
def build_path(tmp_path: Path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path
