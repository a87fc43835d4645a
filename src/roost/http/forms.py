"""URL-encoded form bodies.

Forum forms (login, new thread, reply, moderation actions) are plain
``application/x-www-form-urlencoded`` posts.
"""

from roost.http.multidict import MultiDict, parse_pairs

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class FormData(MultiDict):
    """Parsed form fields; repeated fields are read with ``get_list``."""

    __slots__ = ()


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse *body* as a URL-encoded form.

    Raises:
        ValueError: If *content_type* is anything but a URL-encoded form.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type != FORM_CONTENT_TYPE:
        msg = f"Unsupported form content type: {content_type!r}"
        raise ValueError(msg)
    return FormData(parse_pairs(body.decode("utf-8")))
