"""
Index-carrying sort and set-membership helpers used by the hull engine.
"""
import torch


def sort_with_indices(values, descending: bool = False):
    """
    Sorts values and reports where each sorted value came from.

    Works for floating-point and integer keys. Equal keys keep their original
    relative order.

    Args:
        values (torch.Tensor | Sequence[float | int]): 1D keys to sort.
        descending (bool, optional): Sort from largest to smallest. Defaults to False.

    Returns:
        Tuple[torch.Tensor, torch.Tensor]:
            - sorted_values (torch.Tensor): The keys in sorted order.
            - indices (torch.Tensor): Long tensor; `indices[k]` is the original
              position of `sorted_values[k]`.
    """
    if not isinstance(values, torch.Tensor):
        values = torch.as_tensor(values)
    if values.ndim != 1:
        raise ValueError("sort_with_indices expects a 1D sequence of keys.")
    sorted_values, indices = torch.sort(values, descending=descending, stable=True)
    return sorted_values, indices


def is_member(elements, test_elements) -> torch.Tensor:
    """
    Element-wise membership test.

    Args:
        elements (torch.Tensor | Sequence[int]): Values to look up, any shape.
        test_elements (torch.Tensor | Sequence[int]): The reference set.

    Returns:
        torch.Tensor: Boolean tensor shaped like `elements`, True where the
                      element also occurs in `test_elements`.
    """
    if not isinstance(elements, torch.Tensor):
        elements = torch.as_tensor(elements, dtype=torch.long)
    if not isinstance(test_elements, torch.Tensor):
        test_elements = torch.as_tensor(test_elements, dtype=elements.dtype)
    return torch.isin(elements, test_elements)
