import json
import pathlib
from typing import Any, Dict, List, Optional

from progressbar import progressbar

from config import BUILD_PATH

# Configuration - EDIT THESE VALUES BEFORE RUNNING
BASE_IMAGE_URL = "ipfs://<-- Your CID Code-->"
BASE_NAME = "Bobiboum"
DESCRIPTION = ""

# Constants
METADATA_FILE = "_metadata.json"


def create_metadata(
    metadata: List[Dict[str, Any]], build_path: pathlib.Path = BUILD_PATH
) -> Optional[pathlib.Path]:
    """Write all edition records to the build directory, once.

    An existing metadata file is never overwritten. Stat errors are
    reported and the write is skipped.

    Returns:
        Path of the written file, None when nothing was written
    """
    metadata_path = pathlib.Path(build_path) / METADATA_FILE
    try:
        metadata_path.stat()
    except FileNotFoundError:
        pass
    except OSError as err:
        print(f"Oh no, error: {err}")
        return None
    else:
        print(f"{metadata_path} already exists, not overwriting it")
        return None

    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2, ensure_ascii=False)

    return metadata_path


def create_base_metadata() -> Dict[str, Any]:
    """Create base metadata template."""
    return {
        "name": BASE_NAME,
        "description": DESCRIPTION,
        "image": BASE_IMAGE_URL,
        "attributes": [],
    }


def generate_json_metadata(
    metadata: List[Dict[str, Any]], build_path: pathlib.Path = BUILD_PATH
) -> pathlib.Path:
    """Generate one JSON metadata file per edition for minting."""
    metadata_dir = pathlib.Path(build_path) / "metadata"
    metadata_dir.mkdir(exist_ok=True)

    print(f"Generating JSON metadata for {len(metadata)} editions...")

    for record in progressbar(metadata):
        edition = record["edition"]
        item_metadata = create_base_metadata()
        item_metadata["name"] = f"{BASE_NAME} #{edition}"
        item_metadata["image"] = f"{BASE_IMAGE_URL}/{edition}.png"
        item_metadata["edition"] = edition
        item_metadata["dna"] = record["hash"]
        item_metadata["attributes"] = [
            {"trait_type": attribute["layer"], "value": attribute["name"]}
            for attribute in record["attributes"]
        ]

        json_file = metadata_dir / f"{edition}.json"
        with open(json_file, "w", encoding="utf-8") as f:
            json.dump(item_metadata, f, indent=2, ensure_ascii=False)

    return metadata_dir
