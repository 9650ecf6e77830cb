"""Tests for reading materials back and for no-op detection."""

import os
import unittest

from MaterialBrew.config import BumpDetail, Channel, PipelineConfig
from MaterialBrew.core import MaterialAssignment, SlotAssignment, TextureFile, Transform
from MaterialBrew.graph import (
    MemoryMaterialGraph, MemoryNode, apply_assignment, build_generic_root,
    is_noop, parse_tiles, read_material, readback_to_assignment, same_path,
)
from MaterialBrew.graph import keys


def _full_assignment(detail=BumpDetail.HEIGHT, tint=(10, 20, 30)):
    slots = {
        Channel.ALBEDO: SlotAssignment(Channel.ALBEDO, TextureFile("/lib/rock/rock_albedo.png")),
        Channel.ROUGHNESS: SlotAssignment(
            Channel.ROUGHNESS, TextureFile("/lib/rock/rock_gloss.png"), invert=True),
        Channel.BUMP: SlotAssignment(
            Channel.BUMP, TextureFile("/lib/rock/rock_disp.png"), detail=detail),
        Channel.OPACITY: SlotAssignment(Channel.OPACITY, TextureFile("/lib/rock/rock_mask.png")),
    }
    return MaterialAssignment("/lib/rock", slots, Transform(120.0, 80.0, 45.0), tint=tint)


class TestReadMaterial(unittest.TestCase):
    def setUp(self):
        self.graph = MemoryMaterialGraph("rock", root=build_generic_root())

    def test_round_trip(self):
        assignment = _full_assignment()
        apply_assignment(self.graph, assignment)
        readback = read_material(self.graph)

        for channel, path in assignment.paths().items():
            self.assertEqual(readback.paths()[channel], path, channel)
        self.assertTrue(readback.slots[Channel.ROUGHNESS].invert)
        self.assertFalse(readback.slots[Channel.ALBEDO].invert)
        self.assertTrue(readback.slots[Channel.OPACITY].enabled)
        self.assertFalse(readback.slots[Channel.EMISSIVE].enabled)
        self.assertEqual(readback.bump_detail, BumpDetail.HEIGHT)
        self.assertEqual(readback.tint, (10, 20, 30))
        self.assertEqual(readback.folder, "/lib/rock")
        self.assertAlmostEqual(readback.transform.width_cm, 120.0)
        self.assertAlmostEqual(readback.transform.height_cm, 80.0)
        self.assertAlmostEqual(readback.transform.rotation_deg, 45.0)
        self.assertEqual(readback.tiles, (1, 1))

    def test_normal_detail_round_trip(self):
        apply_assignment(self.graph, _full_assignment(detail=BumpDetail.NORMAL, tint=None))
        readback = read_material(self.graph)
        self.assertEqual(readback.bump_detail, BumpDetail.NORMAL)
        self.assertIsNone(readback.tint)

    def test_round_trip_in_metres(self):
        config = PipelineConfig()
        config.apply.host_unit = "meters"
        apply_assignment(self.graph, _full_assignment(), config)
        readback = read_material(self.graph, config)
        self.assertAlmostEqual(readback.transform.width_cm, 120.0)

    def test_transform_falls_back_across_slots(self):
        root = build_generic_root()
        root.child(keys.SLOT_ALIASES[Channel.ALBEDO][0]).remove_child(keys.BITMAP_NODE[0])
        rough = root.child(keys.SLOT_ALIASES[Channel.ROUGHNESS][0]).child(keys.BITMAP_NODE[0])
        rough.add_leaf(keys.BITMAP_SCALE_X[0], "float", 2.0)
        graph = MemoryMaterialGraph("m", root=root)
        readback = read_material(graph)
        self.assertNotIn(Channel.ALBEDO, readback.slots)
        self.assertAlmostEqual(readback.transform.width_cm, 60.96)

    def test_absent_slots_skipped(self):
        readback = read_material(MemoryMaterialGraph("empty", root=MemoryNode()))
        self.assertEqual(readback.slots, {})
        self.assertIsNone(readback.transform)
        self.assertIsNone(readback.folder)
        self.assertEqual(readback.tiles, (1, 1))

    def test_tiles_from_pattern(self):
        self.graph.surface_pattern = "tiles_4_2_300_400"
        self.assertEqual(read_material(self.graph).tiles, (4, 2))

    def test_readback_to_assignment(self):
        apply_assignment(self.graph, _full_assignment())
        self.graph.surface_pattern = "tiles_3_1"
        assignment = readback_to_assignment(read_material(self.graph))
        self.assertEqual(assignment.paths(), _full_assignment().paths())
        self.assertTrue(assignment.get(Channel.ROUGHNESS).invert)
        self.assertEqual(assignment.get(Channel.BUMP).detail, BumpDetail.HEIGHT)
        self.assertEqual(assignment.tint, (10, 20, 30))
        self.assertEqual(assignment.tiles, (3, 1))
        self.assertEqual(assignment.folder, "/lib/rock")

    def test_readback_without_pattern_has_no_tiles(self):
        apply_assignment(self.graph, _full_assignment())
        readback = read_material(self.graph)
        self.assertEqual(readback.tiles, (1, 1))
        self.assertIsNone(readback.pattern)
        self.assertEqual(readback_to_assignment(readback).tiles, (0, 0))

        self.graph.surface_pattern = "brick_running"
        self.assertEqual(readback_to_assignment(read_material(self.graph)).tiles, (0, 0))

        self.graph.surface_pattern = "tiles_0_3_0_500"
        self.assertEqual(read_material(self.graph).tiles, (1, 3))
        self.assertEqual(readback_to_assignment(read_material(self.graph)).tiles, (0, 3))

    def test_rerouted_metalness_reads_back_as_metalness(self):
        root = build_generic_root()
        root.remove_child(keys.SLOT_ALIASES[Channel.METALNESS][0])
        graph = MemoryMaterialGraph("iron", root=root)
        config = PipelineConfig()
        config.apply.metalness_reflection_fallback = True
        metal = MaterialAssignment(
            "/lib/iron",
            {Channel.METALNESS: SlotAssignment(Channel.METALNESS, TextureFile("/lib/iron/m.png"))},
            Transform(100.0, 100.0, 0.0),
        )
        apply_assignment(graph, metal, config)

        readback = read_material(graph, config)
        self.assertEqual(readback.paths()[Channel.METALNESS], os.path.abspath("/lib/iron/m.png"))
        self.assertTrue(readback.slots[Channel.METALNESS].enabled)
        self.assertNotIn(Channel.REFLECTION, readback.slots)
        # Without the fallback the host slot is reported as it is named
        self.assertEqual(read_material(graph).paths()[Channel.REFLECTION],
                         os.path.abspath("/lib/iron/m.png"))

        self.assertTrue(is_noop(graph, metal, config))
        self.assertFalse(is_noop(graph, metal))


class TestParseTiles(unittest.TestCase):
    def test_forms(self):
        self.assertEqual(parse_tiles("tiles_4_2"), (4, 2))
        self.assertEqual(parse_tiles("tiles_4_ 2_suffix"), (4, 2))
        self.assertEqual(parse_tiles("tiles_0_3_0_500"), (1, 3))

    def test_fallback(self):
        self.assertEqual(parse_tiles(None), (1, 1))
        self.assertEqual(parse_tiles(""), (1, 1))
        self.assertEqual(parse_tiles("brick_running"), (1, 1))
        self.assertEqual(parse_tiles("tiles_4x2"), (1, 1))

    def test_custom_prefix(self):
        self.assertEqual(parse_tiles("grid_2_5", prefix="grid"), (2, 5))


class TestNoOp(unittest.TestCase):
    def test_same_path(self):
        self.assertTrue(same_path(None, ""))
        self.assertTrue(same_path("  ", None))
        self.assertFalse(same_path("/a.png", None))
        self.assertTrue(same_path("/Lib/A.PNG", "/lib/a.png"))
        self.assertTrue(same_path("/lib/x/", "/lib/x"))
        self.assertTrue(same_path("/lib/x/../a.png", "/lib/a.png"))
        self.assertFalse(same_path("/lib/a.png", "/lib/b.png"))

    def test_second_apply_is_noop(self):
        graph = MemoryMaterialGraph("rock", root=build_generic_root())
        assignment = _full_assignment()
        self.assertFalse(is_noop(graph, assignment))
        apply_assignment(graph, assignment)
        self.assertTrue(is_noop(graph, assignment))

    def test_changed_slot_is_not_noop(self):
        graph = MemoryMaterialGraph("rock", root=build_generic_root())
        apply_assignment(graph, _full_assignment())
        changed = _full_assignment()
        changed.slots[Channel.ALBEDO] = SlotAssignment(
            Channel.ALBEDO, TextureFile(os.path.join("/lib/rock", "other.png")))
        self.assertFalse(is_noop(graph, changed))

    def test_removed_slot_is_not_noop(self):
        graph = MemoryMaterialGraph("rock", root=build_generic_root())
        apply_assignment(graph, _full_assignment())
        fewer = _full_assignment()
        fewer.slots[Channel.OPACITY] = SlotAssignment(Channel.OPACITY)
        self.assertFalse(is_noop(graph, fewer))


if __name__ == "__main__":
    unittest.main(verbosity=2)
