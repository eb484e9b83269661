"""YAML loading for configuration files.

Mappings are loaded as ordered, case-insensitive dictionaries so that
`Start date`, `start date` and `START DATE` all name the same key.
"""

import yaml
from pydicti import odicti


def _loader_class(base, mapping_type):
    """Subclass `base` so that mappings are built with `mapping_type`.

    The subclass gets its own constructor table, leaving `base` untouched.
    """

    def construct_mapping(loader, node):
        loader.flatten_mapping(node)
        return mapping_type(loader.construct_pairs(node))

    loader_class = type(
        "CaseInsensitiveLoader",
        (base,),
        {"yaml_constructors": dict(base.yaml_constructors)},
    )
    loader_class.add_constructor(
        yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, construct_mapping
    )
    return loader_class


def ordered_load(stream, loader=yaml.SafeLoader, object_pairs_hook=odicti):
    """
    Load YAML with mappings as `object_pairs_hook` instances.
    """
    return yaml.load(stream, _loader_class(loader, object_pairs_hook))
