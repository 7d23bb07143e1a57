from typing import Iterable, List


def normalize_tags(tags: Iterable[str]) -> List[str]:
    seen = set()
    names: List[str] = []
    for tag in tags or []:
        name = tag.strip().lower()
        if not name or name in seen:
            continue
        seen.add(name)
        names.append(name)

    return names


def parse_taglist(taglist: str) -> List[str]:
    return normalize_tags(taglist.split())
