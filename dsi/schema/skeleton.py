"""Template skeletons the compiler starts from."""
import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

# schema.org Product document with no placeholders of its own
DEFAULT_SKELETON: Dict[str, Any] = {
    "@context": "https://schema.org/",
    "@type": "Product",
    "offers": {
        "@type": "Offer",
        "priceCurrency": "USD",
    },
}


def load_skeleton(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load a template skeleton.

    Args:
        path: JSON file holding the skeleton. If None, the built-in
              schema.org Product skeleton is returned.

    Returns:
        A fresh copy of the skeleton

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not hold a JSON object
    """
    if path is None:
        return copy.deepcopy(DEFAULT_SKELETON)

    skeleton_file = Path(path)
    if not skeleton_file.exists():
        raise FileNotFoundError(f"Skeleton not found: {skeleton_file}")

    with open(skeleton_file, "r", encoding="utf-8") as f:
        skeleton = json.load(f)

    if not isinstance(skeleton, dict):
        raise ValueError(f"Skeleton must be a JSON object: {skeleton_file}")

    return skeleton
