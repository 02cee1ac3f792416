"""
The validation model for table data.

A :py:class:`Validator` holds, for each field of a table, a :py:class:`FieldRules` instance that
says whether the field must be present, whether it may be empty, and an ordered set of named
:py:class:`Rule` instances to apply to its value.  A rule is identified either by the name of a
built-in check (see :py:data:`RULES`) or by a callable; built-in rules are plain values that can
be described to clients while callables are opaque.
"""
import re
from collections import OrderedDict
from collections.abc import Mapping, Sequence
from typing import List

DEFAULT_MESSAGE = "The provided value is invalid"
REQUIRED_MESSAGE = "This field is required"
EMPTY_MESSAGE = "This field cannot be left empty"

ON_CREATE = "create"
ON_UPDATE = "update"

_email_re = re.compile(r'^[^@\s]+@[^@\s]+\.[A-Za-z0-9\-]+$')
_alnum_re = re.compile(r'^\w+$', re.UNICODE)

def _is_number(value):
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value))
        return True
    except ValueError:
        return False

def _length(value):
    try:
        return len(value)
    except TypeError:
        return len(str(value))

# built-in checks, keyed by the rule identifier used in configurations
RULES = {
    "notBlank":      lambda v: bool(str(v).strip()),
    "minLength":     lambda v, n: _length(v) >= n,
    "maxLength":     lambda v, n: _length(v) <= n,
    "lengthBetween": lambda v, lo, hi: lo <= _length(v) <= hi,
    "numeric":       _is_number,
    "naturalNumber": lambda v: not isinstance(v, bool) and str(v).isdigit() and int(v) > 0,
    "range":         lambda v, lo, hi: _is_number(v) and lo <= float(v) <= hi,
    "inList":        lambda v, allowed: v in allowed,
    "email":         lambda v: isinstance(v, str) and bool(_email_re.match(v)),
    "boolean":       lambda v: v in (True, False, 0, 1, "0", "1", "true", "false"),
    "alphaNumeric":  lambda v: isinstance(v, str) and bool(_alnum_re.match(v)),
}

def is_empty(value):
    """
    return True if the value should be considered empty for the purposes of validation
    """
    return value is None or (isinstance(value, (str, list, tuple, dict)) and len(value) == 0)

class Rule(object):
    """
    a single named check on a field value
    """

    def __init__(self, name: str, rule=None, params=None, message: str=None, on: str=None,
                 last: bool=False):
        """
        :param str    name:  the name of the rule within the field's rule set
        :param        rule:  the check to apply:  either the name of a built-in rule (from
                             :py:data:`RULES`) or a callable that takes the value (followed by
                             any params) plus the validation context and returns a bool.  If
                             not provided, ``name`` is taken as the built-in rule name.
        :param      params:  extra arguments to pass to the check, given either as a list or as
                             a callable that takes the validation context and returns the list
        :param str message:  the message to report when the check fails
        :param str      on:  when the rule applies:  None (always), "create", or "update"
        :param bool   last:  if True, no further rules for the field are checked when this one fails
        """
        if rule is None:
            rule = name
        if not callable(rule) and rule not in RULES:
            raise ValueError("%s: unrecognized validation rule: %s" % (name, str(rule)))
        if on not in (None, ON_CREATE, ON_UPDATE):
            raise ValueError("%s: on must be one of None, 'create', or 'update'" % name)
        if params is not None and not callable(params) and \
           (isinstance(params, str) or not isinstance(params, Sequence)):
            params = [params]

        self.name = name
        self.rule = rule
        self.params = params
        self.message = message or DEFAULT_MESSAGE
        self.on = on
        self.last = last

    def applies(self, isnew: bool) -> bool:
        """
        return True if this rule should be checked for an entity in the given state
        """
        if self.on == ON_CREATE:
            return isnew
        if self.on == ON_UPDATE:
            return not isnew
        return True

    def check(self, value, context: Mapping) -> bool:
        """
        apply this rule to a value, returning True if it passes
        """
        args = self.params
        if callable(args):
            args = args(context)
        args = list(args or [])

        if callable(self.rule):
            return bool(self.rule(value, *args, context))
        return bool(RULES[self.rule](value, *args))

    def __repr__(self):
        return "Rule(%s)" % self.name

class FieldRules(object):
    """
    the validation rules that apply to a single field
    """

    def __init__(self, name: str, required=False, allow_empty=True):
        """
        :param str  name:  the field name
        :param  required:  whether the field must be present in input data:  True, False, or
                           one of "create" or "update" to require it only in that mode
        :param bool allow_empty:  whether an empty value is allowed
        """
        self.name = name
        self.required = required
        self.allow_empty = allow_empty
        self._rules = OrderedDict()

    def add(self, name: str, rule=None, params=None, message: str=None, on: str=None,
            last: bool=False):
        """
        append a rule to this field's rule set.  See :py:class:`Rule` for the parameters.
        :return:  self, so that calls can be chained
        """
        self._rules[name] = Rule(name, rule, params, message, on, last)
        return self

    def remove(self, name: str):
        if name in self._rules:
            del self._rules[name]
        return self

    def rule(self, name: str) -> Rule:
        return self._rules.get(name)

    def is_presence_required(self, isnew: bool=True) -> bool:
        if self.required == ON_CREATE:
            return isnew
        if self.required == ON_UPDATE:
            return not isnew
        return bool(self.required)

    def is_empty_allowed(self) -> bool:
        return self.allow_empty

    def __iter__(self):
        return iter(self._rules.items())

    def __len__(self):
        return len(self._rules)

class Validator(object):
    """
    the full set of validation rules for a table, organized by field
    """

    def __init__(self):
        self._fields = OrderedDict()

    def field(self, name: str) -> FieldRules:
        """
        return the rule set for a given field, creating an empty one if necessary
        """
        if name not in self._fields:
            self._fields[name] = FieldRules(name)
        return self._fields[name]

    def add(self, field: str, name: str, rule=None, params=None, message: str=None, on: str=None,
            last: bool=False):
        self.field(field).add(name, rule, params, message, on, last)
        return self

    def require_presence(self, field: str, mode=True):
        self.field(field).required = mode
        return self

    def allow_empty(self, field: str, allowed=True):
        self.field(field).allow_empty = allowed
        return self

    def has_field(self, name: str) -> bool:
        return name in self._fields

    def __iter__(self):
        return iter(self._fields.items())

    def __len__(self):
        return len(self._fields)

    def errors(self, data: Mapping, isnew: bool=True) -> Mapping:
        """
        validate the given input data and return the failures found.
        :param dict data:   the field data to validate; only the fields present are checked,
                            except that a missing field that is required is an error
        :param bool isnew:  True if the data is destined for a new entity (i.e. a create
                            operation), False if it updates an existing entity
        :return:  a dictionary mapping each invalid field name to a list of messages; it is
                  empty if the data is valid
        """
        out = OrderedDict()
        for name, frules in self._fields.items():
            if name not in data:
                if frules.is_presence_required(isnew):
                    out[name] = [REQUIRED_MESSAGE]
                continue

            value = data[name]
            if is_empty(value):
                if not frules.is_empty_allowed():
                    out[name] = [EMPTY_MESSAGE]
                continue

            context = {"data": data, "new": isnew, "field": name}
            msgs = []
            for rname, rule in frules:
                if not rule.applies(isnew):
                    continue
                if not rule.check(value, context):
                    msgs.append(rule.message)
                    if rule.last:
                        break
            if msgs:
                out[name] = msgs

        return out

    @classmethod
    def from_config(cls, config: Mapping):
        """
        create a Validator from a configuration dictionary.  Each key is a field name whose
        value may contain ``required``, ``allow_empty``, and ``rules``; the latter maps rule names
        to objects with ``rule``, ``params``, ``message``, ``on``, and ``last`` properties.
        """
        out = cls()
        for fname, fcfg in (config or {}).items():
            frules = out.field(fname)
            frules.required = fcfg.get('required', False)
            frules.allow_empty = fcfg.get('allow_empty', True)
            for rname, rcfg in fcfg.get('rules', {}).items():
                if rcfg is None:
                    rcfg = {}
                frules.add(rname, rcfg.get('rule'), rcfg.get('params'), rcfg.get('message'),
                           rcfg.get('on'), rcfg.get('last', False))
        return out
