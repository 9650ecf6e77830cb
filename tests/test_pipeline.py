"""End-to-end tests for the material pipeline."""

import os
import shutil
import tempfile
import unittest

from MaterialBrew.config import BumpDetail, Channel, PipelineConfig
from MaterialBrew.graph import (
    GraphCommitError, MemoryDocument, MemoryMaterialGraph, build_generic_root,
)
from MaterialBrew.graph import keys
from MaterialBrew.pipeline import MaterialPipeline

from conftest import ROCK_FILES, make_texture_folder


class TestMaterialPipeline(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.folder = make_texture_folder(self.tmpdir, "rock_wall", ROCK_FILES)
        self.doc = MemoryDocument.with_generic_template()
        self.pipeline = MaterialPipeline(PipelineConfig())

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_rock_scenario(self):
        assignment = self.pipeline.plan(self.folder, width_cm=200, height_cm=100)
        report = self.pipeline.apply(self.doc, assignment)
        self.assertEqual(report.material, "rock_wall")
        self.assertEqual(report.applied, [Channel.ALBEDO, Channel.ROUGHNESS, Channel.BUMP])

        readback = self.pipeline.read(self.doc, "rock_wall")
        paths = readback.paths()
        self.assertEqual(os.path.basename(paths[Channel.ALBEDO]), "rock_albedo.png")
        self.assertEqual(os.path.basename(paths[Channel.ROUGHNESS]), "rock_rough.png")
        self.assertEqual(os.path.basename(paths[Channel.BUMP]), "rock_normal.png")
        self.assertIsNone(paths[Channel.OPACITY])
        self.assertFalse(readback.slots[Channel.ROUGHNESS].invert)
        self.assertEqual(readback.bump_detail, BumpDetail.NORMAL)
        self.assertAlmostEqual(readback.transform.width_cm, 200.0)
        self.assertEqual(readback.folder, self.folder)

    def test_second_apply_is_noop(self):
        first = self.pipeline.apply_folder(self.doc, self.folder)
        self.assertFalse(first.noop)
        second = self.pipeline.apply_folder(self.doc, self.folder)
        self.assertTrue(second.noop)
        self.assertEqual(second.applied, [])

    def test_noop_skip_can_be_disabled(self):
        self.pipeline.config.apply.skip_noop = False
        self.pipeline.apply_folder(self.doc, self.folder)
        second = self.pipeline.apply_folder(self.doc, self.folder)
        self.assertFalse(second.noop)

    def test_tiles_assign_pattern(self):
        self.pipeline.apply_folder(self.doc, self.folder, width_cm=120, height_cm=60, tiles=(4, 2))
        graph = self.doc.find_graph("rock_wall")
        self.assertEqual(graph.surface_pattern, "tiles_4_2_300_300")
        self.assertEqual(self.pipeline.read(self.doc, "rock_wall").tiles, (4, 2))

    def test_size_hint_from_folder_name(self):
        folder = make_texture_folder(self.tmpdir, "brick_200x100mm", ["brick_diff.png"])
        assignment = self.pipeline.plan(folder)
        self.assertAlmostEqual(assignment.transform.width_cm, 20.0)
        self.assertAlmostEqual(assignment.transform.height_cm, 10.0)

    def test_size_hint_disabled(self):
        self.pipeline.config.defaults.detect_size_from_name = False
        folder = make_texture_folder(self.tmpdir, "brick_200x100mm", ["brick_diff.png"])
        assignment = self.pipeline.plan(folder)
        self.assertEqual(assignment.transform.width_cm, 100.0)

    def test_explicit_name(self):
        report = self.pipeline.apply_folder(self.doc, self.folder, material_name="Stone A")
        self.assertEqual(report.material, "Stone A")
        self.assertIsNotNone(self.doc.find_graph("Stone A"))

    def test_edit_existing(self):
        self.pipeline.apply_folder(self.doc, self.folder, tint=(200, 100, 0))
        assignment = self.pipeline.edit(self.doc, "rock_wall")
        self.assertEqual(assignment.tint, (200, 100, 0))
        self.assertEqual(os.path.basename(assignment.get(Channel.ALBEDO).path), "rock_albedo.png")
        self.assertEqual(assignment.tiles, (0, 0))
        # Re-applying the unchanged edit is a no-op
        self.assertTrue(self.pipeline.apply(self.doc, assignment, "rock_wall").noop)
        self.assertEqual(self.doc.patterns(), [])
        self.assertIsNone(self.doc.find_graph("rock_wall").surface_pattern)

    def test_edit_existing_keeps_pattern(self):
        self.pipeline.apply_folder(self.doc, self.folder, width_cm=120, height_cm=60, tiles=(4, 0))
        assignment = self.pipeline.edit(self.doc, "rock_wall")
        self.assertEqual(assignment.tiles, (4, 0))
        self.assertTrue(self.pipeline.apply(self.doc, assignment, "rock_wall").noop)
        self.assertEqual([p.name for p in self.doc.patterns()], ["tiles_4_0_300_0"])

    def test_new_tiles_break_noop(self):
        self.pipeline.apply_folder(self.doc, self.folder, width_cm=120, height_cm=60)
        report = self.pipeline.apply_folder(self.doc, self.folder, width_cm=120, height_cm=60,
                                            tiles=(4, 2))
        self.assertFalse(report.noop)
        self.assertEqual(self.doc.find_graph("rock_wall").surface_pattern, "tiles_4_2_300_300")

    def test_commit_failure_leaves_pattern_unassigned(self):
        self.pipeline.apply_folder(self.doc, self.folder)
        graph = self.doc.find_graph("rock_wall")

        def hook(graph, staged):
            raise RuntimeError("host refused")

        graph.commit_hook = hook
        with self.assertRaises(GraphCommitError):
            self.pipeline.apply_folder(self.doc, self.folder, width_cm=120, height_cm=60,
                                       tiles=(4, 2))
        self.assertIsNone(graph.surface_pattern)

    def test_invalid_pattern_size_writes_nothing(self):
        with self.assertRaises(ValueError):
            self.pipeline.apply_folder(self.doc, self.folder, width_cm=0, tiles=(2, 2))
        self.assertIsNone(self.doc.find_graph("rock_wall"))

    def test_metalness_fallback_second_apply_is_noop(self):
        root = build_generic_root()
        root.remove_child(keys.SLOT_ALIASES[Channel.METALNESS][0])
        doc = MemoryDocument()
        doc.add_graph(MemoryMaterialGraph("Generic", root=root))
        folder = make_texture_folder(self.tmpdir, "iron", ["iron_diff.png", "iron_metallic.png"])
        self.pipeline.config.apply.metalness_reflection_fallback = True

        first = self.pipeline.apply_folder(doc, folder)
        self.assertEqual(first.applied, [Channel.ALBEDO, Channel.METALNESS])
        second = self.pipeline.apply_folder(doc, folder)
        self.assertTrue(second.noop)

        readback = self.pipeline.read(doc, "iron")
        self.assertEqual(os.path.basename(readback.paths()[Channel.METALNESS]), "iron_metallic.png")
        self.assertIsNone(readback.paths()[Channel.REFLECTION])

    def test_read_unknown_material(self):
        self.assertIsNone(self.pipeline.read(self.doc, "nope"))
        self.assertIsNone(self.pipeline.edit(self.doc, "nope"))

    def test_scan_library_reports_progress(self):
        make_texture_folder(self.tmpdir, "oak", ["oak_diff.png"], real_images=True)
        calls = []
        pipeline = MaterialPipeline(progress_callback=lambda *a: calls.append(a))
        scans = pipeline.scan_library(self.tmpdir, with_sizes=True, show_progress=False)
        self.assertEqual(len(scans), 2)
        self.assertEqual(calls[-1], ("scan", 2, 2))
        oak = scans[0]
        self.assertEqual(oak.to_dict()["textures"][0]["size"], [8, 8])

    def test_scan_report_lod_and_key_image(self):
        folder = make_texture_folder(self.tmpdir, "slate", ["slate.png", "slate_4k_albedo.png"])
        data = self.pipeline.scan(folder).to_dict()
        self.assertTrue(data["key_image"])
        lods = {t["name"]: t["lod"] for t in data["textures"]}
        self.assertEqual(lods["slate_4k_albedo.png"], 4)
        self.assertIsNone(lods["slate.png"])
        self.assertFalse(self.pipeline.scan(self.folder).to_dict()["key_image"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
