import pathlib

# Layer configuration, bottom to top: (name, number of slots)
# A trait is picked with probability 1 / slots; slots beyond the number of
# files in the layer directory mean the layer may be left empty.
LAYERS_ORDER = [
    ("Background", 3),
    ("Body", 4),
    ("Eyes", 6),
    ("Head Gear", 8),
    ("Shirt", 6),
    ("Misc", 5),
]

# Canvas size in pixels
FORMAT = {"width": 1000, "height": 1000}

# Rarity markers found in file names: (marker, label)
# First match wins, so keep longer markers before the ones they contain.
RARITY = [
    ("_sr", "super rare"),
    ("_r", "rare"),
    ("", "original"),
]

EDITION_SIZE = 50

LAYERS_PATH = pathlib.Path("layers")
BUILD_PATH = pathlib.Path("build")

# None draws a fresh seed from the OS
SEED = None

# Keep painting on the same canvas across editions without clearing it
REUSE_CANVAS = True
