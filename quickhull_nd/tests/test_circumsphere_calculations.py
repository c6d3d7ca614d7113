import torch
import unittest

from ..circumsphere_calculations import compute_simplex_circumsphere, is_point_in_circumsphere


class TestCircumsphereCalculations(unittest.TestCase):
    """Tests for circumsphere calculation functions."""

    def test_circumcenter_2d_right_triangle(self):
        """Tests 2D circumcenter for a right-angled triangle."""
        vertices = torch.tensor([[0., 0.], [2., 0.], [0., 2.]])
        center, squared_radius = compute_simplex_circumsphere(vertices)
        self.assertIsNotNone(center, "Center should not be None for a right triangle")
        self.assertTrue(torch.allclose(center, torch.tensor([1., 1.])))
        self.assertAlmostEqual(squared_radius.item(), 2.0, places=10)

    def test_circumcenter_2d_equilateral_triangle(self):
        """Tests 2D circumcenter for an equilateral triangle; dtype is preserved."""
        vertices = torch.tensor([[0., 0.], [2., 0.], [1., 3.0 ** 0.5]], dtype=torch.float32)
        center, _ = compute_simplex_circumsphere(vertices)
        self.assertIsNotNone(center, "Center should not be None for an equilateral triangle")
        self.assertEqual(center.dtype, torch.float32)
        expected_center = torch.tensor([1.0, 1.0 / 3.0 ** 0.5], dtype=torch.float32)
        self.assertTrue(torch.allclose(center, expected_center, atol=1e-6))

    def test_circumcenter_2d_collinear(self):
        """Tests 2D circumcenter for collinear points; expects None."""
        vertices = torch.tensor([[0., 0.], [1., 1.], [2., 2.]])
        center, squared_radius = compute_simplex_circumsphere(vertices)
        self.assertIsNone(center, "Center should be None for collinear points")
        self.assertIsNone(squared_radius)

    def test_circumcenter_3d_simple_tetrahedron(self):
        """Tests 3D circumcenter for a simple tetrahedron at origin."""
        vertices = torch.tensor([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.], [0., 0., 1.]])
        center, squared_radius = compute_simplex_circumsphere(vertices)
        self.assertTrue(torch.allclose(center, torch.tensor([0.5, 0.5, 0.5])))
        self.assertAlmostEqual(squared_radius.item(), 0.75, places=10)

    def test_circumcenter_3d_regular_tetrahedron_origin_centered(self):
        """Tests 3D circumcenter for a regular tetrahedron centered at origin."""
        vertices = torch.tensor([[1., 1., 1.], [1., -1., -1.], [-1., 1., -1.], [-1., -1., 1.]])
        center, squared_radius = compute_simplex_circumsphere(vertices)
        self.assertTrue(torch.allclose(center, torch.zeros(3), atol=1e-6))
        self.assertAlmostEqual(squared_radius.item(), 3.0, places=10)

    def test_circumcenter_3d_coplanar_points(self):
        """Tests 3D circumcenter for coplanar points; expects None."""
        vertices = torch.tensor([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.], [1., 1., 0.]])
        center, _ = compute_simplex_circumsphere(vertices)
        self.assertIsNone(center, "Center should be None for coplanar points")

    def test_circumcenter_1d_and_4d(self):
        """Segments and 4-simplices are handled by the same routine."""
        center, squared_radius = compute_simplex_circumsphere(torch.tensor([[1.], [3.]]))
        self.assertTrue(torch.allclose(center, torch.tensor([2.])))
        self.assertAlmostEqual(squared_radius.item(), 1.0, places=10)

        vertices = torch.cat([torch.zeros((1, 4)), torch.eye(4)], dim=0)
        center, squared_radius = compute_simplex_circumsphere(vertices)
        self.assertTrue(torch.allclose(center, torch.full((4,), 0.5)))
        self.assertAlmostEqual(squared_radius.item(), 1.0, places=10)

    def test_wrong_shape_raises(self):
        with self.assertRaises(ValueError):
            compute_simplex_circumsphere(torch.zeros((3, 3)))


class TestInCircumsphere(unittest.TestCase):
    """Tests for `is_point_in_circumsphere`."""

    def setUp(self):
        self.triangle = torch.tensor([[0., 0.], [2., 0.], [0., 2.]])

    def test_inside(self):
        self.assertTrue(is_point_in_circumsphere(torch.tensor([1., 1.]), self.triangle))
        self.assertTrue(is_point_in_circumsphere(torch.tensor([1.8, 1.8]), self.triangle))

    def test_outside(self):
        self.assertFalse(is_point_in_circumsphere(torch.tensor([3., 3.]), self.triangle))

    def test_on_sphere_is_not_inside(self):
        """Cocircular points (here the fourth corner of the square) are not strictly inside."""
        self.assertFalse(is_point_in_circumsphere(torch.tensor([2., 2.]), self.triangle))
        self.assertFalse(is_point_in_circumsphere(self.triangle[0], self.triangle))

    def test_degenerate_simplex(self):
        collinear = torch.tensor([[0., 0.], [1., 1.], [2., 2.]])
        self.assertFalse(is_point_in_circumsphere(torch.tensor([1., 1.]), collinear))


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
