"""Map material channels onto the host slots that hold them."""

from typing import Dict, NamedTuple, Optional

from ..config import Channel, MATERIAL_CHANNELS, PipelineConfig
from . import keys
from .host import GraphNode, resolve_child


class SlotRoute(NamedTuple):
    """Where one channel lives on a graph.

    ``slot`` names the host slot (and its toggle) the channel is written
    to. ``node`` and ``bitmap`` are None when the host has no such slot.
    """

    slot: Channel
    node: Optional[GraphNode]
    bitmap: Optional[GraphNode]


def metalness_rerouted(root: GraphNode, config: Optional[PipelineConfig] = None) -> bool:
    """True when metalness is carried by the reflectivity slot.

    That happens only with ``apply.metalness_reflection_fallback`` set on a
    host that has a reflectivity slot but no metalness slot.
    """
    config = config or PipelineConfig()
    return (config.apply.metalness_reflection_fallback
            and resolve_child(root, keys.SLOT_ALIASES[Channel.METALNESS]) is None
            and resolve_child(root, keys.SLOT_ALIASES[Channel.REFLECTION]) is not None)


def route_slots(root: GraphNode, config: Optional[PipelineConfig] = None) -> Dict[Channel, SlotRoute]:
    """Return channel -> SlotRoute for every material channel.

    Apply, read-back and no-op detection all go through this table, so a
    rerouted metalness map is written, read and compared in the same slot.
    While rerouted, reflection has no slot of its own.
    """
    rerouted = metalness_rerouted(root, config)
    routes = {}
    for channel in MATERIAL_CHANNELS:
        slot = channel
        if rerouted and channel == Channel.METALNESS:
            slot = Channel.REFLECTION
        node = None
        if not (rerouted and channel == Channel.REFLECTION):
            node = resolve_child(root, keys.SLOT_ALIASES[slot])
        routes[channel] = SlotRoute(slot, node, resolve_child(node, keys.BITMAP_NODE))
    return routes
