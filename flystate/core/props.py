# flystate/core/props.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Dict, Mapping, Optional

Props = Dict[str, Any]


def merge_props(static: Optional[Mapping[str, Any]], dynamic: Optional[Mapping[str, Any]]) -> Props:
    """
    Combine a machine's fixed props with the props supplied to start().

    The result is a new dict; keys in ``dynamic`` override keys in ``static``.

    :param static: Props fixed at machine construction.
    :param dynamic: Props supplied for one run.
    :return: The merged props shared by every state of the run.
    """
    merged: Props = dict(static or {})
    merged.update(dynamic or {})
    return merged


def update_props(props: Props, updates: Optional[Mapping[str, Any]]) -> Props:
    """
    Overwrite selected keys of a props dict in place.

    Shallow and unvalidated: nested values are replaced, not merged, and keys
    absent from the original props are simply added.
    """
    if updates:
        props.update(updates)
    return props
