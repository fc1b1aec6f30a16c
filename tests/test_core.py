# -*- coding: utf-8 -*-
import unittest

import numpy as np

import rasterproj as rp
from rasterproj.core import Geo_bbox, Tile_placement, Reprojection, project
from rasterproj.projection import Web_mercator, Mollweide
from rasterproj.numpy_utils.interp2d import Bilinear, Nearest, Bicubic
import test_config


WORLD = (-90., 90., -180., 180.)


class Test_chunks(unittest.TestCase):

    def test_chunk_count(self):
        """ Test the various methods linked to chunk indexing """
        source = test_config.world_grid(4, 8)
        for (rows, cols, chunk_size) in [
            (1, 1, 256),
            (16, 16, 256),
            (17, 15, 256),
            (100, 3, 7),
            (5, 5, 1),
        ]:
            with self.subTest(rows=rows, cols=cols, chunk_size=chunk_size):
                with test_config.settings(chunk_size=chunk_size):
                    target = test_config.empty_grid(rows, cols)
                    reprojection = Reprojection(
                        Web_mercator(), Bilinear(), source, WORLD,
                        target, (0, 0, cols, rows)
                    )
                    counter = 0
                    covered = 0
                    prev_end = 0
                    for chunk_slice in reprojection.chunk_slices():
                        begin, end = chunk_slice
                        self.assertEqual(begin, prev_end)
                        self.assertTrue(end - begin <= chunk_size)
                        self.assertEqual(
                            reprojection.chunk_rank(chunk_slice), counter
                        )
                        prev_end = end
                        covered += end - begin
                        counter += 1
                    self.assertEqual(counter, reprojection.chunks_count)
                    self.assertEqual(covered, rows * cols)


class Test_project(unittest.TestCase):

    def test_sentinel(self):
        """ A pixel reverse-projected at (lng=50, lat=0) is outside a
        [-10, 10] x [-10, 10] source """
        source = test_config.world_grid(20, 20)
        target = test_config.empty_grid(1, 1)
        # x_norm = 230 / 360 -> lng = 50 ; y_norm = 0.5 -> lat = 0
        project(
            Web_mercator(), Bilinear(), source, -10., 10., -10., 10.,
            target, 230, 360, 1, 2
        )
        self.assertEqual(target.at(0, 0), -np.finfo(np.float64).max)
        self.assertEqual(target.at(0, 0), target.nodata)

        # Same setup with lng = 0 falls inside
        project(
            Web_mercator(), Bilinear(), source, -10., 10., -10., 10.,
            target, 180, 360, 1, 2
        )
        self.assertEqual(target.at(0, 0), source.at(10, 10))

    def test_sentinel_float32(self):
        source = test_config.world_grid(20, 20, dtype=np.float32)
        target = test_config.empty_grid(1, 1, dtype=np.float32)
        project(
            Web_mercator(), Bilinear(), source, -10., 10., -10., 10.,
            target, 230, 360, 1, 2
        )
        self.assertEqual(target.at(0, 0), -np.finfo(np.float32).max)

    def test_scenario_world(self):
        """ 1 sample / degree world grid to a 256 x 256 Web Mercator tile:
        the (lat=0, lng=0) sample lands at pixel (128, 128) """
        arr = np.zeros([180, 360])
        arr[90, 180] = 1.
        source = rp.Grid(arr.reshape(-1), 360, 180, 360)
        target = test_config.empty_grid(256, 256)
        project(
            Web_mercator(), Bilinear(), source, *WORLD,
            target, 0, 256, 0, 256
        )
        row, col = np.unravel_index(np.argmax(target.arr), target.arr.shape)
        self.assertTrue(abs(row - 128) <= 1)
        self.assertTrue(abs(col - 128) <= 1)
        self.assertEqual(target.at(128, 128), 1.)

    def test_disjoint_write(self):
        """ Every target cell is written, the row padding is not """
        source = test_config.world_grid(45, 90, seed=12)
        padding = 7.
        for projection in (Web_mercator(), Mollweide()):
            with self.subTest(projection=projection.__class__.__name__):
                target = test_config.empty_grid(
                    33, 41, fill=padding, stride=50
                )
                target.arr[:] = np.nan
                project(
                    projection, Bilinear(), source, *WORLD,
                    target, 0, 41, 0, 33
                )
                self.assertFalse(np.any(np.isnan(target.arr)))
                padded = target.buffer.copy()
                for r in range(target.rows):
                    padded[r * 50: r * 50 + 41] = padding
                np.testing.assert_array_equal(
                    padded, np.full(padded.shape, padding)
                )

    def test_determinism(self):
        """ Bit-identical results, multithreaded or not """
        source = test_config.world_grid(90, 180, seed=3)
        results = []
        for (enable_multithreading, chunk_size) in [
            (True, 256), (True, 256), (True, 13), (False, 256)
        ]:
            with test_config.settings(
                enable_multithreading=enable_multithreading,
                chunk_size=chunk_size
            ):
                target = test_config.empty_grid(70, 90)
                project(
                    Mollweide(), Bicubic(), source, *WORLD,
                    target, 10, 100, 5, 100
                )
                results.append(target.arr.copy())
        for res in results[1:]:
            np.testing.assert_array_equal(res, results[0])

    def test_tile_independence(self):
        """ Full image vs 2 adjacent tiles of the same full image """
        source = test_config.world_grid(60, 120, seed=5)
        for projection in (Web_mercator(), Mollweide()):
            with self.subTest(projection=projection.__class__.__name__):
                full = test_config.empty_grid(48, 64)
                project(
                    projection, Bilinear(), source, *WORLD,
                    full, 0, 64, 0, 48
                )
                left = test_config.empty_grid(48, 24)
                right = test_config.empty_grid(48, 40)
                project(
                    projection, Bilinear(), source, *WORLD,
                    left, 0, 64, 0, 48
                )
                project(
                    projection, Bilinear(), source, *WORLD,
                    right, 24, 64, 0, 48
                )
                np.testing.assert_array_equal(full.arr[:, :24], left.arr)
                np.testing.assert_array_equal(full.arr[:, 24:], right.arr)

    def test_mollweide_outside(self):
        """ Mollweide: pixels outside the ellipse are no-data """
        source = test_config.world_grid(90, 180, seed=8)
        target = test_config.empty_grid(64, 64)
        project(
            Mollweide(), Bilinear(), source, *WORLD, target, 0, 64, 0, 64
        )
        nodata = target.nodata
        # rows above / below the ellipse
        self.assertTrue(np.all(target.arr[:16, :] == nodata))
        self.assertTrue(np.all(target.arr[49:, :] == nodata))
        # ellipse corners
        self.assertEqual(target.at(20, 1), nodata)
        # center
        self.assertNotEqual(target.at(32, 32), nodata)
        self.assertTrue(np.all(target.arr[32, 1:] != nodata))

    def test_linear_field(self):
        """ Web Mercator tile of a field linear in lng: output linear in x """
        r, c = np.meshgrid(np.arange(181), np.arange(361), indexing="ij")
        arr = c.astype(np.float64)
        source = rp.Grid(arr.reshape(-1), 361, 181, 361)
        # source covers 361 x 181 sample points, 1 degree apart
        bbox = (-90., 91., -180., 181.)
        target = test_config.empty_grid(16, 32)
        project(
            Web_mercator(), Bilinear(), source, *bbox,
            target, 0, 32, 0, 16
        )
        expected_row = 360. * np.arange(32) / 32.
        for row in range(1, 15):
            np.testing.assert_allclose(target.arr[row, :], expected_row,
                                       rtol=1.e-12, atol=1.e-9)

    def test_interpolators(self):
        """ All interpolators agree on a constant field """
        arr = np.full([30, 60], 3.5)
        source = rp.Grid(arr.reshape(-1), 60, 30, 60)
        for interpolator in (Nearest(), Bilinear(), Bicubic()):
            with self.subTest(interpolator=interpolator.__class__.__name__):
                target = test_config.empty_grid(20, 20)
                project(
                    Web_mercator(), interpolator, source, *WORLD,
                    target, 0, 20, 0, 20
                )
                np.testing.assert_allclose(target.arr, 3.5, rtol=1.e-14)


class Test_errors(unittest.TestCase):

    def setUp(self):
        self.source = test_config.world_grid(10, 20)
        self.target = test_config.empty_grid(8, 8)

    def test_no_projection(self):
        with self.assertRaises(ValueError):
            project(
                None, Bilinear(), self.source, *WORLD,
                self.target, 0, 8, 0, 8
            )
        self.assertTrue(np.all(np.isnan(self.target.arr)))

    def test_bbox(self):
        for bbox in [
            (10., -10., -180., 180.),
            (10., 10., -180., 180.),
            (-90., 90., 180., -180.),
            (-90., 90., 0., 0.),
        ]:
            with self.subTest(bbox=bbox):
                with self.assertRaises(ValueError):
                    project(
                        Web_mercator(), Bilinear(), self.source, *bbox,
                        self.target, 0, 8, 0, 8
                    )
        self.assertTrue(np.all(np.isnan(self.target.arr)))
        self.assertEqual(
            Geo_bbox(*WORLD).check(), Geo_bbox(-90., 90., -180., 180.)
        )

    def test_totals(self):
        for (x_total, y_total) in [(0, 8), (8, 0), (-8, 8), (8.5, 8)]:
            with self.subTest(x_total=x_total, y_total=y_total):
                with self.assertRaises(ValueError):
                    project(
                        Web_mercator(), Bilinear(), self.source, *WORLD,
                        self.target, 0, x_total, 0, y_total
                    )

    def test_placement(self):
        """ Placement beyond the full image: warning by default, error in
        strict mode """
        placement = Tile_placement(4, 0, 8, 8)
        with self.assertLogs("rasterproj.core", level="WARNING"):
            placement.check(self.target)
        project(
            Web_mercator(), Bilinear(), self.source, *WORLD,
            self.target, 4, 8, 0, 8
        )
        self.assertFalse(np.any(np.isnan(self.target.arr)))

        with test_config.settings(strict_placement=True):
            with self.assertRaises(ValueError):
                placement.check(self.target)

    def test_chunk_size_setting(self):
        """ Invalid chunk size: configuration error before any write """
        for chunk_size in (0, -256, 2.5, None):
            with self.subTest(chunk_size=chunk_size):
                with test_config.settings(chunk_size=chunk_size):
                    with self.assertRaises(ValueError):
                        project(
                            Web_mercator(), Bilinear(), self.source, *WORLD,
                            self.target, 0, 8, 0, 8
                        )
        self.assertTrue(np.all(np.isnan(self.target.arr)))

    def test_read_only_target(self):
        buffer = np.zeros(64)
        buffer.flags.writeable = False
        target = rp.Grid(buffer, 8, 8, 8)
        with self.assertRaises(ValueError):
            project(
                Web_mercator(), Bilinear(), self.source, *WORLD,
                target, 0, 8, 0, 8
            )

    def test_types(self):
        with self.assertRaises(ValueError):
            project(
                "epsg:3857", Bilinear(), self.source, *WORLD,
                self.target, 0, 8, 0, 8
            )
        with self.assertRaises(ValueError):
            project(
                Web_mercator(), "bilinear", self.source, *WORLD,
                self.target, 0, 8, 0, 8
            )
        with self.assertRaises(ValueError):
            project(
                Web_mercator(), Bilinear(), self.source.arr, *WORLD,
                self.target, 0, 8, 0, 8
            )


if __name__ == "__main__":
    full_test = True
    runner = unittest.TextTestRunner(verbosity=2)
    if full_test:
        runner.run(test_config.suite([Test_chunks, Test_project, Test_errors]))
    else:
        suite = unittest.TestSuite()
        suite.addTest(Test_project("test_scenario_world"))
        runner.run(suite)
