# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import re
import typing

COMMENT_PATTERN = re.compile(r"<!--[\s\S]*?-->")
ENVELOPE_PATTERN = re.compile(r"(?:<\?[^?]*\?>\s*)?<([^:]*):Envelope([\s\S]*)</\1:Envelope>", re.I)


def normalize_envelope(
    body: typing.Any,
) -> typing.Any:
    """Strip anything before and after the SOAP envelope of a response body.

    Some servers send stray bytes around the envelope. The first XML comment
    is dropped, then the optional XML declaration and the outermost
    `prefix:Envelope` element are kept. This does not validate the XML, a
    body without an envelope (or that isn't a string) is returned as is.
    """
    if not isinstance(body, str):
        return body

    match = ENVELOPE_PATTERN.search(COMMENT_PATTERN.sub("", body, count=1))
    if match:
        return match.group(0)

    return body
