"""YAML utilities for configuration processing.

Mappings are loaded as case-insensitive ordered dictionaries, so config keys
can be written in any case (`Sprint view`, `sprint view`).
"""

import yaml
from pydicti import odicti


def ordered_load(stream, loader=yaml.SafeLoader, object_pairs_hook=odicti):
    """
    Load YAML mappings as case-insensitive ordered dictionaries.
    """

    def construct_mapping(loader, node, _deep=False):
        loader.flatten_mapping(node)
        return object_pairs_hook(loader.construct_pairs(node))

    # Subclass so the shared SafeLoader keeps its own constructors
    constructors = dict(getattr(loader, "yaml_constructors", {}))
    PortfolioLoader = type("PortfolioLoader", (loader,), {"yaml_constructors": constructors})
    PortfolioLoader.add_constructor(
        yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, construct_mapping
    )

    return yaml.load(stream, PortfolioLoader)
