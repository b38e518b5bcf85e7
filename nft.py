import math
import pathlib
import shutil
import time
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image
import pandas as pd
from progressbar import ProgressBar
import numpy as np

from config import (
    BUILD_PATH,
    EDITION_SIZE,
    FORMAT,
    LAYERS_ORDER,
    LAYERS_PATH,
    RARITY,
    REUSE_CANVAS,
    SEED,
)
from metadata import create_metadata, generate_json_metadata

# Initialize random number generator
rng = np.random.default_rng(SEED)

# (attributes, hash, decoded_hash) collected while rendering one edition
Draft = Tuple[List[Dict[str, Any]], List[int], List[Dict[int, int]]]


class FilesystemError(OSError):
    """A layer directory or trait image could not be read."""


def add_rarity(file_name: str, rarity=RARITY) -> Optional[str]:
    """Return the label of the first rarity marker found in the file name."""
    for marker, label in rarity:
        if marker in file_name:
            return label
    return None


def clean_name(file_name: str, rarity=RARITY) -> str:
    """Drop the extension and every rarity marker from a file name."""
    name = pathlib.Path(file_name).stem
    for marker, _ in rarity:
        if marker:
            name = name.replace(marker, "")
    return name


def get_elements(path: pathlib.Path, rarity=RARITY) -> List[Dict[str, Any]]:
    """List the trait elements of a layer directory.

    Hidden files are skipped. Files are taken in name order and that order
    is part of the rarity model: element ``n`` is drawn when the random
    index lands on ``n - 1``.
    """
    path = pathlib.Path(path)
    try:
        entries = sorted(path.iterdir(), key=lambda entry: entry.name)
    except OSError as err:
        raise FilesystemError(f"Layer directory not readable: {path}") from err

    files = [
        entry.name
        for entry in entries
        if not entry.name.startswith(".") and entry.is_file()
    ]
    return [
        {
            "id": index + 1,
            "name": clean_name(file_name, rarity),
            "file_name": file_name,
            "rarity": add_rarity(file_name, rarity),
        }
        for index, file_name in enumerate(files)
    ]


def layers_setup(
    layers_order=LAYERS_ORDER,
    layers_path: pathlib.Path = LAYERS_PATH,
    canvas_format: Dict[str, int] = FORMAT,
    rarity=RARITY,
) -> List[Dict[str, Any]]:
    """Build the layer catalog from the configured layer order."""
    width, height = canvas_format["width"], canvas_format["height"]
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid canvas format: {canvas_format}")

    layers = []
    for index, (name, number) in enumerate(layers_order):
        if number <= 0:
            raise ValueError(f"Layer {name!r} needs a positive slot count, got {number}")
        location = pathlib.Path(layers_path) / name
        layers.append(
            {
                "id": index,
                "name": name,
                "location": location,
                "elements": get_elements(location, rarity),
                "position": {"x": 0, "y": 0},
                "size": {"width": width, "height": height},
                "number": number,
            }
        )
    return layers


def get_total_combinations(layers: List[Dict[str, Any]]) -> int:
    """Get total number of distinct possible combinations."""
    total = 1
    for layer in layers:
        reachable = min(len(layer["elements"]), layer["number"])
        if layer["number"] > len(layer["elements"]):
            # empty layer is a combination of its own
            reachable += 1
        total = total * reachable
    return total


def build_setup(build_path: pathlib.Path = BUILD_PATH) -> None:
    """Wipe and recreate the build directory."""
    build_path = pathlib.Path(build_path)
    if build_path.exists():
        shutil.rmtree(build_path)
    build_path.mkdir(parents=True)


def pick_element(layer: Dict[str, Any], generator=None) -> Optional[Dict[str, Any]]:
    """Pick zero or one element of a layer.

    Each slot has a probability of ``1 / layer["number"]``. Slots past the
    end of the element list select nothing.
    """
    if generator is None:
        generator = rng
    index = math.floor(generator.random() * layer["number"])
    if index < len(layer["elements"]):
        return layer["elements"][index]
    return None


def new_canvas(canvas_format: Dict[str, int] = FORMAT) -> Image.Image:
    return Image.new("RGBA", (canvas_format["width"], canvas_format["height"]))


def load_image(path: pathlib.Path) -> Image.Image:
    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except OSError as err:
        raise FilesystemError(f"Cannot load trait image: {path}") from err


def save_layer(canvas: Image.Image, edition: int, build_path: pathlib.Path = BUILD_PATH) -> None:
    canvas.save(pathlib.Path(build_path) / f"{edition}.png")


def add_attributes(element: Dict[str, Any], layer: Dict[str, Any], draft: Draft) -> None:
    attributes, hash_, decoded_hash = draft
    attribute = {"id": element["id"], "layer": layer["name"], "name": element["name"]}
    if element["rarity"] is not None:
        attribute["rarity"] = element["rarity"]
    attributes.append(attribute)
    hash_.extend([layer["id"], element["id"]])
    decoded_hash.append({layer["id"]: element["id"]})


def draw_layer(
    layer: Dict[str, Any],
    edition: int,
    canvas: Image.Image,
    draft: Draft,
    build_path: pathlib.Path = BUILD_PATH,
    generator=None,
) -> Optional[Dict[str, Any]]:
    """Draw a random trait of the layer and save the canvas so far."""
    element = pick_element(layer, generator)
    if element is None:
        return None

    add_attributes(element, layer, draft)
    image = load_image(layer["location"] / element["file_name"])
    size = (layer["size"]["width"], layer["size"]["height"])
    if image.size != size:
        image = image.resize(size)
    canvas.alpha_composite(image, dest=(layer["position"]["x"], layer["position"]["y"]))
    save_layer(canvas, edition, build_path)
    return element


def create_edition(
    layers: List[Dict[str, Any]],
    edition: int,
    canvas: Image.Image,
    build_path: pathlib.Path = BUILD_PATH,
    generator=None,
) -> Draft:
    """Render all layers in order and return the resulting draft."""
    draft: Draft = ([], [], [])
    for layer in layers:
        draw_layer(layer, edition, canvas, draft, build_path, generator)
    return draft


def get_key(hash_: List[int]) -> str:
    return ",".join(str(value) for value in hash_)


def add_metadata(draft: Draft, edition: int) -> Dict[str, Any]:
    attributes, hash_, decoded_hash = draft
    return {
        "hash": get_key(hash_),
        "decodedHash": decoded_hash,
        "edition": edition,
        "date": int(time.time() * 1000),
        "attributes": attributes,
    }


def create_files(
    layers: List[Dict[str, Any]],
    edition_count: int = EDITION_SIZE,
    build_path: pathlib.Path = BUILD_PATH,
    canvas_format: Dict[str, int] = FORMAT,
    reuse_canvas: bool = REUSE_CANVAS,
    generator=None,
) -> List[Dict[str, Any]]:
    """Generate up to ``edition_count`` unique editions.

    A combination already seen is rendered again for the same edition
    number. Generation stops early once more than ``edition_count``
    duplicates were drawn over the whole run.

    Returns:
        Metadata records of the accepted editions, in edition order
    """
    metadata = []
    exists: Dict[str, int] = {}
    num_dupes = 0
    canvas = new_canvas(canvas_format)

    with ProgressBar(max_value=edition_count) as bar:
        for edition in range(1, edition_count + 1):
            while True:
                if not reuse_canvas:
                    canvas = new_canvas(canvas_format)
                draft = create_edition(layers, edition, canvas, build_path, generator)
                key = get_key(draft[1])
                if key not in exists:
                    break

                print(f"Duplicate creation for edition {edition}. Same as edition {exists[key]}")
                num_dupes += 1
                if num_dupes > edition_count:
                    print(f"Stopped after {num_dupes} duplicates, no more unique editions")
                    return metadata

            exists[key] = edition
            metadata.append(add_metadata(draft, edition))
            print(f"Creating edition {edition}")
            bar.update(edition)

    return metadata


def get_rarity_stats(metadata: List[Dict[str, Any]], layers: List[Dict[str, Any]]) -> pd.DataFrame:
    """Compare target and observed trait frequencies per layer.

    The ``none`` row of a layer holds the chance of leaving it empty.
    """
    total = len(metadata)
    selected = pd.DataFrame(
        [
            {"layer": attribute["layer"], "id": attribute["id"]}
            for record in metadata
            for attribute in record["attributes"]
        ],
        columns=["layer", "id"],
    )

    rows = []
    for layer in layers:
        picked = selected[selected["layer"] == layer["name"]]
        counts = picked["id"].value_counts()
        number = layer["number"]
        for index, element in enumerate(layer["elements"]):
            rows.append(
                {
                    "layer": layer["name"],
                    "trait": element["name"],
                    "target": 1.0 / number if index < number else 0.0,
                    "actual": counts.get(element["id"], 0) / total if total else 0.0,
                }
            )
        rows.append(
            {
                "layer": layer["name"],
                "trait": "none",
                "target": max(number - len(layer["elements"]), 0) / number,
                "actual": (total - len(picked)) / total if total else 0.0,
            }
        )

    return pd.DataFrame(rows, columns=["layer", "trait", "target", "actual"])


def generate_rarity_stats(metadata: List[Dict[str, Any]], layers: List[Dict[str, Any]]) -> None:
    """Print rarity statistics comparing actual vs target distributions."""
    stats = get_rarity_stats(metadata, layers)
    stats["diff"] = (stats["actual"] - stats["target"]).abs()

    for layer_name, group in stats.groupby("layer", sort=False):
        print(f"\n{layer_name.upper()}:")
        for row in group.itertuples():
            print(
                f"    {row.trait}: {row.actual:.4f} (target: {row.target:.4f}, diff: {row.diff:.4f})"
            )
        print(f"  Max difference: {group['diff'].max():.4f}")


def main() -> None:
    """Main edition generation workflow."""
    print("Checking assets...")
    layers = layers_setup()
    print("✅ Assets validated successfully!\n")

    total_combinations = get_total_combinations(layers)
    print(f"You can create up to {total_combinations} distinct editions\n")

    answer = input(f"How many editions would you like to create? [{EDITION_SIZE}] ").strip()
    edition_count = int(answer) if answer else EDITION_SIZE

    print("Starting generation...")
    build_setup()
    metadata = create_files(layers, edition_count)
    print(f"Generated {len(metadata)} editions")

    print("Saving metadata...")
    create_metadata(metadata)
    generate_json_metadata(metadata)

    print("\n=== Rarity Statistics ===")
    generate_rarity_stats(metadata, layers)

    print("✅ Task complete!")


# Run the main function
if __name__ == "__main__":
    main()
