"""
Tag helpers for AWS-style ``[{"Key": ..., "Value": ...}]`` tag lists.
"""

from typing import Dict, List, Optional


def tags_to_dict(tag_list: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """
    Convert an AWS tag list into a plain dictionary.

    Args:
        tag_list: Tags as returned by the EC2 API (may be None)

    Returns:
        Dictionary of tag key to value; missing values become ""
    """
    if not tag_list:
        return {}
    return {tag["Key"]: tag.get("Value") or "" for tag in tag_list}


def dict_to_tags(tags: Dict[str, str]) -> List[Dict[str, str]]:
    """Convert a tag dictionary into the EC2 API list form."""
    return [{"Key": key, "Value": value} for key, value in tags.items()]


def get_tag(tag_list: Optional[List[Dict[str, str]]], key: str) -> Optional[str]:
    """
    Return the value of the first tag whose key equals ``key``.

    Args:
        tag_list: Tags in EC2 API list form
        key: Tag key to look up (exact match)

    Returns:
        Tag value, or None if no such tag exists
    """
    for tag in tag_list or []:
        if tag.get("Key") == key:
            return tag.get("Value")
    return None


def format_tags(tag_list: Optional[List[Dict[str, str]]]) -> str:
    """Render tags inline as ``{key: value} {key: value}``."""
    return " ".join(f"{{{tag.get('Key')}: {tag.get('Value')}}}" for tag in tag_list or [])


def parse_user_tags(tag_strings: List[str]) -> Dict[str, str]:
    """
    Parse user-provided tag strings in format "key=value".

    Args:
        tag_strings: List of tag strings in "key=value" format

    Returns:
        Dictionary of parsed tags

    Raises:
        ValueError: If tag string format is invalid
    """
    tags = {}

    for tag_str in tag_strings:
        if "=" not in tag_str:
            raise ValueError(f"Invalid tag format: {tag_str}. Expected 'key=value'")

        key, value = tag_str.split("=", 1)
        if not key.strip():
            raise ValueError(f"Invalid tag format: {tag_str}. Key must not be empty")

        tags[key.strip()] = value

    return tags
