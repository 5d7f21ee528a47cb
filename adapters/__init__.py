from adapters.base import BaseAdapter
from adapters.line import LineAdapter

__all__ = ["BaseAdapter", "LineAdapter"]
