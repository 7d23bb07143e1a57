import math

PAGE_SIZE = 12


def get_offset(page: int) -> int:
    # page is not validated: 0 or negative pages give 0 or negative offsets
    return (page - 1) * PAGE_SIZE


def get_num_pages(total: int) -> int:
    return int(math.ceil(float(total) / float(PAGE_SIZE)))
