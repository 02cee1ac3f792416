"""
Assembly of the describe document:  the machine-readable metadata for a resource (its hidden 
fields, columns and labels, validation rules, relations, and links to its operations) that 
clients can use to generate forms and documentation.
"""
import logging, re
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

from .. import system
from ..table import Table, AssociationType, Validator
from .errors import RouteResolutionError
from .routing import ReverseRouter

log = logging.getLogger(system.system_abbrev).getChild("describe")

# the order of this list determines the order of keys in the relations map
RELATION_KINDS = [AssociationType.BELONGS_TO, AssociationType.HAS_ONE,
                  AssociationType.HAS_MANY, AssociationType.BELONGS_TO_MANY]

_id_suffix_re = re.compile(r'_id$')

def humanize(name: str) -> str:
    """
    convert an underscored name to a human-readable phrase (e.g. "first_name" -> "First Name")
    """
    return " ".join(w[:1].upper() + w[1:] for w in name.split("_") if w)

def make_label(column: str) -> str:
    """
    return the display label for a column:  its humanized name with any trailing "_id" removed
    """
    return humanize(_id_suffix_re.sub('', column))

def _has_callable(params) -> bool:
    if callable(params):
        return True
    return isinstance(params, (list, tuple)) and any(callable(p) for p in params)

def describe_validators(validator: Validator) -> Mapping:
    out = OrderedDict()
    for name, frules in validator:
        rules = OrderedDict()
        for rname, rule in frules:
            ident, params = rule.rule, rule.params
            if callable(ident) or _has_callable(params):
                # executable code is not describable
                ident, params = None, None
            rules[rname] = OrderedDict([
                ("message", rule.message),
                ("on", rule.on),
                ("rule", ident),
                ("params", list(params) if params is not None else None),
                ("last", rule.last)
            ])
        out[name] = OrderedDict([
            ("validatePresence", frules.required),
            ("emptyAllowed", frules.is_empty_allowed()),
            ("rules", rules)
        ])
    return out

def describe_relations(table: Table) -> Mapping:
    return OrderedDict((kind.value, [a.target for a in table.associations.of_type(kind)])
                       for kind in RELATION_KINDS)

def describe_links(rrouter: ReverseRouter, **pathparams) -> Mapping:
    """
    return the links to the index, add, edit, and delete operations.  A link that cannot be 
    resolved is left out of the result.
    """
    out = OrderedDict()
    try:
        path = rrouter.index_path(**pathparams)
    except RouteResolutionError as ex:
        log.warning("Unable to describe any action links for %s: %s", rrouter.owner, str(ex))
        return out

    for key, name, suffix, method in [("index",  "self",   "",      "GET"),
                                      ("add",    "add",    "",      "POST"),
                                      ("edit",   "edit",   "/{id}", "PUT"),
                                      ("delete", "delete", "/{id}", "DELETE")]:
        try:
            out[key] = rrouter.link(name, path + suffix, method).to_dict()
        except RouteResolutionError as ex:
            log.warning("Omitting %s link from description of %s: %s", key, rrouter.owner, str(ex))
    return out

def describe_table(table: Table, rrouter: ReverseRouter=None, hidden: List[str]=None,
                   **pathparams) -> Mapping:
    """
    assemble the describe document for the resource backed by the given table.
    :param Table        table:  the table to describe
    :param ReverseRouter rrouter:  the link builder for the resource's service; if None, the 
                                   ``actions`` map will be empty
    :param list        hidden:  the hidden fields to report; if None, they are read from a new 
                                entity created by the table
    :param pathparams:  values for template parameters in the resource's path (e.g. ``parent_id``)
    """
    if hidden is None:
        hidden = table.new_entity().hidden
    schema = table.schema
    columns = schema.columns()

    return OrderedDict([
        ("entity", OrderedDict([("hidden", list(hidden))])),
        ("schema", OrderedDict([
            ("columns", OrderedDict((c, schema.column(c)) for c in columns)),
            ("labels", OrderedDict((c, make_label(c)) for c in columns))
        ])),
        ("validators", describe_validators(table.validator)),
        ("relations", describe_relations(table)),
        ("actions", describe_links(rrouter, **pathparams) if rrouter else OrderedDict())
    ])
