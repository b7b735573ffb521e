# -*- coding: utf-8 -*-
import unittest
from unittest import mock

import numpy as np

import mandelbrot_raster as mr
from mandelbrot_raster.core import sampling
from mandelbrot_raster.core.sampling import average_counts, validate_zoom, wrap8


class Test_validation(unittest.TestCase):

    def test_validate_zoom(self):
        self.assertEqual(validate_zoom(1), 1)
        self.assertEqual(validate_zoom(np.uint8(255)), 255)
        for zoom in (0, -1, 256, 1.0, True, "3", None):
            with self.subTest(zoom=zoom):
                with self.assertRaises(ValueError):
                    validate_zoom(zoom)

    def test_zoom_zero_never_computes(self):
        sampler = mr.FixedPrecisionSampler(width=16)
        with mock.patch.object(sampling, "escape_time") as escape:
            with self.assertRaises(ValueError):
                sampler.sample(0.0, 0.0, 0)
            escape.assert_not_called()

    def test_invalid_delta(self):
        for cls in (mr.FixedPrecisionSampler, mr.ArbitraryPrecisionSampler):
            with self.subTest(cls=cls):
                with self.assertRaises(ValueError):
                    cls(delta=0.0)
                for delta in (-1e-3, float("inf"), float("nan"), "0.1"):
                    with self.assertRaises(ValueError):
                        cls(delta=delta)

    def test_wrapping_helpers(self):
        self.assertEqual(wrap8(256), 0)
        self.assertEqual(wrap8(300), 44)
        self.assertEqual(average_counts([2, 2, 2, 2]), 2)
        self.assertEqual(average_counts([1, 2, 2, 2]), 1)
        # 400 wraps to 144 before the division
        self.assertEqual(average_counts([100, 100, 100, 100]), 36)


class Test_FixedPrecisionSampler(unittest.TestCase):

    def test_default_delta(self):
        self.assertEqual(mr.FixedPrecisionSampler().delta, 0.3 / 1024)
        self.assertEqual(mr.FixedPrecisionSampler(width=4).delta, 0.3 / 4)
        self.assertEqual(mr.FixedPrecisionSampler(delta=1e-3, width=4).delta, 1e-3)

    def test_known_intensities(self):
        sampler = mr.FixedPrecisionSampler(delta=1e-4)
        self.assertEqual(sampler.sample(0.0, 0.0, 1), 0)
        self.assertEqual(sampler.sample(-2.0, -2.0, 1), 0)
        for zoom in (1, 2, 3, 7):
            with self.subTest(zoom=zoom):
                self.assertEqual(sampler.sample(-1.0, -1.0, zoom), 2)
                self.assertEqual(sampler.sample(0.5, 0.0, zoom), 4)

    def test_center_sample_seeds_zoom_one(self):
        plain = mr.FixedPrecisionSampler(delta=1e-4)
        seeded = mr.FixedPrecisionSampler(delta=1e-4, include_center=True)
        self.assertEqual(plain.sample(-1.0, -1.0, 1), 2)
        self.assertEqual(seeded.sample(-1.0, -1.0, 1), 4)
        # Only zoom == 1 is affected
        self.assertEqual(seeded.sample(-1.0, -1.0, 2), 2)

    def test_center_sample_skipped_by_default(self):
        sampler = mr.FixedPrecisionSampler(delta=1e-4)
        with mock.patch.object(sampling, "escape_time", return_value=3) as escape:
            self.assertEqual(sampler.sample(0.25, 0.5, 1), 3)
        self.assertEqual(escape.call_count, 4)
        called = [c.args[0] for c in escape.call_args_list]
        self.assertNotIn(complex(0.25, 0.5), called)

    def test_diagonal_pattern(self):
        sampler = mr.FixedPrecisionSampler(delta=0.125)
        with mock.patch.object(sampling, "escape_time", return_value=0) as escape:
            sampler.sample(0.5, -0.5, 2)
        called = [c.args[0] for c in escape.call_args_list]
        pattern = [0.625 - 0.375j, 0.625 - 0.625j, 0.375 - 0.625j, 0.375 - 0.375j]
        self.assertEqual(called, pattern * 2)

    def test_accumulator_wraps(self):
        sampler = mr.FixedPrecisionSampler(delta=1e-3)
        with mock.patch.object(sampling, "escape_time", return_value=100):
            # each round adds 36; 10 rounds give 360, wrapped to 104
            self.assertEqual(sampler.sample(0.0, 0.0, 10), 10)
            self.assertEqual(sampler.sample(0.0, 0.0, 1), 36)

    def test_grid_accumulator_wraps(self):
        sampler = mr.FixedPrecisionSampler(delta=1e-3)

        def hundred(c):
            return np.full(np.shape(c), 100, dtype=np.uint8)

        with mock.patch.object(sampling, "escape_time_array", side_effect=hundred):
            grid = sampler.sample_grid(np.zeros(3), np.zeros(2), 10)
        np.testing.assert_array_equal(grid, np.full((2, 3), 10, dtype=np.uint8))

    def test_grid_matches_pixels(self):
        plane = mr.ComplexPlane(12, 10)
        xs, ys = plane.real_axis(), plane.imag_axis()
        for include_center in (False, True):
            sampler = mr.FixedPrecisionSampler(width=12, include_center=include_center)
            for zoom in (1, 2, 5):
                with self.subTest(zoom=zoom, include_center=include_center):
                    grid = sampler.sample_grid(xs, ys, zoom)
                    self.assertEqual(grid.shape, (10, 12))
                    expected = [[sampler.sample(float(x), float(y), zoom) for x in xs] for y in ys]
                    np.testing.assert_array_equal(grid, expected)

    def test_output_range(self):
        sampler = mr.FixedPrecisionSampler(width=64)
        plane = mr.ComplexPlane(64, 64)
        for zoom in (1, 2, 3, 255):
            with self.subTest(zoom=zoom):
                grid = sampler.sample_grid(plane.real_axis()[::8], plane.imag_axis()[::8], zoom)
                self.assertTrue(np.all(grid < 200))


class Test_ArbitraryPrecisionSampler(unittest.TestCase):

    def test_defaults(self):
        sampler = mr.ArbitraryPrecisionSampler()
        self.assertEqual(sampler.delta, 4 / 1024)
        self.assertEqual(sampler.precision.bits, 61)
        self.assertEqual(sampler.describe(),
                         {'backend': 'arbitrary', 'sample_delta': 4 / 1024, 'precision_bits': 61})
        self.assertEqual(mr.ArbitraryPrecisionSampler(precision_bits=90).precision.bits, 90)

    def test_matches_fixed_far_from_boundary(self):
        fixed = mr.FixedPrecisionSampler(delta=1e-4)
        arbitrary = mr.ArbitraryPrecisionSampler(delta=1e-4)
        points = [(0.0, 0.0), (-1.0, -1.0), (0.5, 0.0), (1.5, 1.5), (5.0, 5.0), (-2.0, -2.0)]
        for x, y in points:
            for zoom in (1, 2):
                with self.subTest(x=x, y=y, zoom=zoom):
                    self.assertEqual(arbitrary.sample(x, y, zoom), fixed.sample(x, y, zoom))

    def test_center_sample_seeds_zoom_one(self):
        seeded = mr.ArbitraryPrecisionSampler(delta=1e-4, include_center=True)
        self.assertEqual(seeded.sample(-1.0, -1.0, 1), 4)

    def test_grid_matches_pixels(self):
        sampler = mr.ArbitraryPrecisionSampler()
        xs = np.array([-2.0, -1.0, 0.5])
        ys = np.array([-1.0, 0.0])
        grid = sampler.sample_grid(xs, ys, 1)
        expected = [[sampler.sample(x, y, 1) for x in xs] for y in ys]
        np.testing.assert_array_equal(grid, expected)

    def test_zoom_validation(self):
        with self.assertRaises(ValueError):
            mr.ArbitraryPrecisionSampler().sample(0.0, 0.0, 0)


class Test_SamplerRegistry(unittest.TestCase):

    def test_names_and_aliases(self):
        self.assertEqual(mr.SamplerRegistry.list_backends(), ['arbitrary', 'fixed'])
        self.assertIs(mr.SamplerRegistry.get('fixed'), mr.FixedPrecisionSampler)
        self.assertIs(mr.SamplerRegistry.get('Complex128'), mr.FixedPrecisionSampler)
        self.assertIs(mr.SamplerRegistry.get('bigfloat'), mr.ArbitraryPrecisionSampler)
        self.assertIs(mr.SamplerRegistry.get('mpmath'), mr.ArbitraryPrecisionSampler)
        with self.assertRaises(ValueError):
            mr.SamplerRegistry.get('float32')

    def test_create_from_config(self):
        config = mr.RenderConfig(width=8, height=8, precision_bits=80, include_center_sample=True)
        fixed = mr.SamplerRegistry.create('fixed', config)
        self.assertEqual(fixed.delta, 0.3 / 8)
        self.assertTrue(fixed.include_center)
        arbitrary = mr.SamplerRegistry.create('arbitrary', config)
        self.assertEqual(arbitrary.precision.bits, 80)
        self.assertEqual(arbitrary.delta, 4 / 1024)

    def test_register_rejects_foreign_classes(self):
        with self.assertRaises(ValueError):
            mr.SamplerRegistry.register('dummy', object)


if __name__ == "__main__":
    unittest.main(verbosity=2)
