import torch
import unittest

from ..ordering import sort_with_indices, is_member


class TestSortWithIndices(unittest.TestCase):
    """Tests for `sort_with_indices`."""

    def test_ascending_floats(self):
        values = torch.tensor([0.3, -1.0, 2.5, 0.0])
        sorted_values, indices = sort_with_indices(values)
        self.assertTrue(torch.equal(sorted_values, torch.tensor([-1.0, 0.0, 0.3, 2.5])))
        self.assertEqual(indices.tolist(), [1, 3, 0, 2])

    def test_descending_integers_from_list(self):
        sorted_values, indices = sort_with_indices([3, 9, 1], descending=True)
        self.assertEqual(sorted_values.tolist(), [9, 3, 1])
        self.assertEqual(indices.tolist(), [1, 0, 2])

    def test_ties_keep_input_order(self):
        """Equal keys are reported in their original order, ascending or descending."""
        values = torch.tensor([2.0, 1.0, 2.0, 1.0, 2.0])
        _, indices = sort_with_indices(values)
        self.assertEqual(indices.tolist(), [1, 3, 0, 2, 4])
        _, indices = sort_with_indices(values, descending=True)
        self.assertEqual(indices.tolist(), [0, 2, 4, 1, 3])

    def test_indices_reconstruct_values(self):
        values = torch.rand(50, generator=torch.Generator().manual_seed(3))
        sorted_values, indices = sort_with_indices(values)
        self.assertTrue(torch.equal(values[indices], sorted_values))

    def test_rejects_2d_input(self):
        with self.assertRaises(ValueError):
            sort_with_indices(torch.zeros((2, 2)))


class TestIsMember(unittest.TestCase):
    """Tests for `is_member`."""

    def test_vector(self):
        result = is_member(torch.tensor([4, 1, 7, 1]), [1, 7])
        self.assertEqual(result.tolist(), [False, True, True, True])

    def test_matrix_keeps_shape(self):
        """Counting members per row is how shared facet vertices are found."""
        facets = torch.tensor([[0, 1, 2], [1, 2, 3], [4, 5, 6]])
        shared = is_member(facets, torch.tensor([1, 2, 5]))
        self.assertEqual(tuple(shared.shape), (3, 3))
        self.assertEqual(shared.sum(dim=1).tolist(), [2, 2, 1])

    def test_empty_reference_set(self):
        result = is_member([1, 2, 3], [])
        self.assertEqual(result.tolist(), [False, False, False])


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
