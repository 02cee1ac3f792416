"""
Support for content negotiation:  choosing the output format for a response from the formats a 
client asks for (via a query parameter) and the content types it will accept (via the ``Accept`` 
header).
"""
import re
from collections import OrderedDict, namedtuple
from typing import List

class UnsupportedFormat(Exception):
    """
    none of the formats requested by the client are supported.  This should result in a 400 
    (Bad Request) response.
    """
    pass

class Unacceptable(Exception):
    """
    the selected format's content type is not acceptable to the client.  This should result in 
    a 406 (Not Acceptable) response.
    """
    pass

Format = namedtuple("Format", ["name", "ctype"])

def is_content_type(label: str) -> bool:
    """
    return True if the given format label is a MIME type rather than a format name
    """
    return '/' in label

def match_accept(ctype: str, accepted: str) -> str:
    """
    return the more specific of the two content types if they match (allowing for ``type/*`` 
    wildcards), or None if they do not
    """
    if ctype == accepted or (accepted.endswith('/*') and ctype.startswith(accepted[:-1])):
        return ctype
    if ctype.endswith('/*') and accepted.startswith(ctype[:-1]):
        return accepted
    return None

def order_accepts(accepts) -> List[str]:
    """
    order the given Accept header values by their q-values, dropping the q-values and any with
    a q-value of zero.
    :param accepts:  the Accept header value or a list of them
    """
    if isinstance(accepts, str):
        accepts = [accepts]
    vals = []
    for a in accepts:
        vals.extend(v.strip() for v in a.split(',') if v.strip())

    weighted = []
    for v in vals:
        q = 1.0
        m = re.search(r';\s*q=(\d+(\.\d+)?)', v)
        if m:
            q = float(m.group(1))
        weighted.append((re.sub(r';.*$', '', v).strip(), q))

    # sort is stable, so equal q-values keep the client's order
    weighted.sort(key=lambda a: a[1], reverse=True)
    return [a[0] for a in weighted if a[1] > 0]

class FormatSupport(object):
    """
    the set of output formats a service supports, used to select the format to return to a 
    client.  Each format is registered with the content types that should select it.
    """

    def __init__(self):
        self._lu = OrderedDict()
        self._deffmt = None

    def support(self, format: Format, cts: List[str]=None, asdefault: bool=False):
        """
        add support for a named format
        :param Format format:  the format, with its name and default content type
        :param list      cts:  other content types that should select this format
        :param bool asdefault: if True (or if this is the first format registered), make this the 
                               format returned when the client expresses no preference
        """
        self._lu[format.name] = format
        self._lu[format.ctype] = format
        for ct in (cts or []):
            self._lu[ct] = format
        if asdefault or not self._deffmt:
            self._deffmt = format

    def default_format(self) -> Format:
        return self._deffmt

    def match(self, label: str) -> Format:
        """
        return the supported format matching the given format name or content type (which may be 
        a ``type/*`` wildcard), or None if it is not supported
        """
        if label in ('*', '*/*'):
            return self._deffmt
        if label.endswith('/*'):
            if self._deffmt and match_accept(self._deffmt.ctype, label):
                return self._deffmt
            for key, fmt in self._lu.items():
                if is_content_type(key) and match_accept(key, label):
                    return fmt
            return None
        return self._lu.get(label)

    def _is_acceptable(self, fmt: Format, accepts: List[str]) -> bool:
        cts = [k for k, f in self._lu.items() if f.name == fmt.name and is_content_type(k)]
        return any(match_accept(ct, a) for a in accepts for ct in cts + ['*/*'])

    def select_format(self, formats: List[str], accepts: List[str]) -> Format:
        """
        choose the format to return given the client's preferences.  Formats requested 
        explicitly take precedence, but they must be acceptable according to ``accepts`` when 
        the latter is not empty.
        :param list formats:  format names or content types requested by the client, in order of
                              preference
        :param list accepts:  content types acceptable to the client, in order of preference
        :return:  the selected Format, or None if the client expressed no preference
        :raises UnsupportedFormat:  if none of the requested formats are supported
        :raises Unacceptable:       if no supported format is acceptable to the client
        """
        if formats:
            supported = [f for f in (self.match(label) for label in formats) if f]
            if not supported:
                raise UnsupportedFormat("Unsupported format requested: " + ", ".join(formats))
            for fmt in supported:
                if not accepts or self._is_acceptable(fmt, accepts):
                    return fmt
            raise Unacceptable("format parameter is inconsistent with Accept header")

        if accepts:
            for label in accepts:
                fmt = self.match(label)
                if fmt:
                    return fmt
            raise Unacceptable("No given Accept types supported")

        return None
