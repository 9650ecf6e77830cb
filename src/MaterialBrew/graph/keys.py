"""Alias tables for slots and leaves of a generic host material graph.

Hosts expose the same slot or leaf under different names depending on their
version and locale. Every lookup walks its alias tuple in order and the
first existing name wins.
"""

from typing import Dict, Tuple

from ..config import Channel

Aliases = Tuple[str, ...]

# Channel -> slot child of the graph root.
SLOT_ALIASES: Dict[Channel, Aliases] = {
    Channel.ALBEDO: (
        "generic_diffuse_tex", "Generic_Diffuse", "diffuse_tex", "common_Tint_color_texture",
    ),
    Channel.ROUGHNESS: (
        "generic_glossiness_tex", "generic_roughness_tex", "generic_reflect_glossiness_tex",
    ),
    Channel.REFLECTION: (
        "generic_reflectivity_tex", "generic_specular_tex", "generic_reflection_tex",
    ),
    Channel.METALNESS: ("generic_metalness_tex", "pbr_metalness_tex"),
    Channel.BUMP: (
        "generic_bump_map", "generic_bump_tex", "generic_normalmap_tex", "generic_normaltex",
    ),
    Channel.OPACITY: (
        "generic_transparency_tex", "generic_opacity_tex", "generic_cutout_tex",
    ),
    Channel.EMISSIVE: (
        "generic_emission_tex", "generic_selfillum_tex", "generic_emissive_tex",
    ),
}

# Channel -> boolean "slot enabled" leaf on the graph root.
SLOT_TOGGLES: Dict[Channel, Aliases] = {
    Channel.ALBEDO: ("generic_diffuse_on",),
    Channel.ROUGHNESS: ("generic_glossiness_on", "generic_roughness_on"),
    Channel.REFLECTION: ("generic_reflectivity_on", "generic_specular_on"),
    Channel.METALNESS: ("generic_metalness_on", "pbr_metalness_on"),
    Channel.BUMP: ("generic_bump_map_on", "generic_bump_on"),
    Channel.OPACITY: ("generic_transparency_on", "generic_opacity_on"),
    Channel.EMISSIVE: ("generic_emission_on", "generic_selfillum_on"),
}

# Bitmap node connected under a slot.
BITMAP_NODE: Aliases = ("unifiedbitmap", "UnifiedBitmap", "bumpmap", "texture")

# Leaves of the bitmap node.
BITMAP_PATH: Aliases = (
    "UnifiedBitmap.Bitmap", "unifiedbitmap_Bitmap", "texture_Bitmap",
    "BumpMap.BumpmapBitmap", "bumpmap_Bitmap",
)
BITMAP_INVERT: Aliases = ("UnifiedBitmap.Invert", "unifiedbitmap_Invert")
BITMAP_SCALE_X: Aliases = (
    "UnifiedBitmap.RealWorldScaleX", "unifiedbitmap_RealWorldScaleX", "texture_RealWorldScaleX",
)
BITMAP_SCALE_Y: Aliases = (
    "UnifiedBitmap.RealWorldScaleY", "unifiedbitmap_RealWorldScaleY", "texture_RealWorldScaleY",
)
BITMAP_ROTATION: Aliases = (
    "UnifiedBitmap.WAngle", "unifiedbitmap_WAngle", "texture_WAngle", "texture_Rotation",
)

# Bump leaves; looked up on the bitmap node, then the slot, then the root.
BUMP_TYPE: Aliases = ("BumpMap.BumpmapType", "bumpmap_Type")
BUMP_TYPE_NORMAL = 1
BUMP_TYPE_HEIGHT = 0
BUMP_NORMAL_STRENGTH: Aliases = ("BumpMap.BumpmapNormalScale", "bumpmap_NormalScale")
BUMP_DEPTH_STRENGTH: Aliases = (
    "BumpMap.BumpmapDepth", "bumpmap_Amount", "generic_bump_amount", "bump_amount",
)

# Albedo tint; looked up on the albedo bitmap node, then the root.
TINT_TOGGLE: Aliases = (
    "common_Tint_toggle", "UnifiedBitmap.Tint_enabled", "unifiedbitmap_Tint_toggle",
)
TINT_COLOR: Aliases = (
    "common_Tint_color", "UnifiedBitmap.Tint_color", "unifiedbitmap_Tint_color",
)

# Free-text leaf on the root holding the source folder path.
DESCRIPTION: Aliases = ("SchemaCommon.Description", "common_Description", "description")

# Property that marks a graph as generic-like when searching for a template.
DIFFUSE_PROBE = "generic_diffuse"
