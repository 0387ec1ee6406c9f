class HeapError(Exception):
    pass


class DuplicateValueError(HeapError, KeyError):
    def __init__(self, value) -> None:
        super().__init__(f"Value already in heap: {value!r}")
        self.value = value


class EmptyHeapError(HeapError, IndexError):
    def __init__(self, op: str) -> None:
        super().__init__(f"{op} from empty heap")
        self.op = op


class ValueNotFoundError(HeapError, KeyError):
    def __init__(self, value) -> None:
        super().__init__(f"Value not in heap: {value!r}")
        self.value = value


class HeapInvariantError(HeapError, AssertionError):
    pass
