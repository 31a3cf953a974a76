"""
Instrumented sorting algorithms.

Every algorithm is a generator ``sort(seq, counter)`` that mutates ``seq`` in
place and yields ``(op, indices)`` right after each primitive operation:

    Op.COMPARE  two values were compared        (counter.record_comparison)
    Op.SWAP     two elements were exchanged     (counter.record_swap)
    Op.WRITE    one slot was overwritten        (counter.record_swap)
    Op.READ     one slot was read into a buffer (no counter)

Each yield is a suspension point: whoever drives the generator can delay,
pause or single-step between operations. Nothing in here is random, so the
same input always produces the same operation trace.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

from .config import COMB_SHRINK, INTRO_INSERTION_THRESHOLD, RADIX_BASE, TIM_RUN
from .errors import InvalidConfigurationError


class Op(enum.Enum):
    COMPARE = "compare"
    SWAP = "swap"
    WRITE = "write"
    READ = "read"


class Tally:
    """Plain operation counter for running a body outside of a SortRun."""

    def __init__(self):
        self.comparisons = 0
        self.swaps = 0

    def record_comparison(self):
        self.comparisons += 1

    def record_swap(self):
        self.swaps += 1


# ============================================================
# ======================= PRIMITIVES =========================
# ============================================================

def _compare(counter, a, b, at):
    """Count one comparison of ``a`` against ``b`` and return its sign."""
    counter.record_comparison()
    yield Op.COMPARE, at
    return (a > b) - (a < b)


def _swap(seq, counter, i, j):
    seq.swap(i, j)
    counter.record_swap()
    yield Op.SWAP, (i, j)


def _write(seq, counter, k, element):
    seq[k] = element
    counter.record_swap()
    yield Op.WRITE, (k,)


def _insertion_range(seq, counter, lo, hi):
    # the failed comparison that stops the inner loop is counted too
    for i in range(lo + 1, hi + 1):
        key = seq[i]
        j = i - 1
        while j >= lo:
            if (yield from _compare(counter, seq[j].value, key.value, (j, j + 1))) <= 0:
                break
            yield from _write(seq, counter, j + 1, seq[j])
            j -= 1
        if j + 1 != i:
            yield from _write(seq, counter, j + 1, key)


def _merge(seq, counter, lo, mid, hi):
    left = [seq[x] for x in range(lo, mid + 1)]
    right = [seq[x] for x in range(mid + 1, hi + 1)]
    i = j = 0
    k = lo
    while i < len(left) and j < len(right):
        if (yield from _compare(counter, left[i].value, right[j].value, (k,))) <= 0:
            yield from _write(seq, counter, k, left[i])
            i += 1
        else:
            yield from _write(seq, counter, k, right[j])
            j += 1
        k += 1
    while i < len(left):
        yield from _write(seq, counter, k, left[i])
        i += 1
        k += 1
    while j < len(right):
        yield from _write(seq, counter, k, right[j])
        j += 1
        k += 1


def _partition(seq, counter, lo, hi):
    """Lomuto partition around seq[hi]; returns the pivot's final index."""
    pivot = seq[hi].value
    i = lo - 1
    for j in range(lo, hi):
        if (yield from _compare(counter, seq[j].value, pivot, (j, hi))) < 0:
            i += 1
            yield from _swap(seq, counter, i, j)
    yield from _swap(seq, counter, i + 1, hi)
    seq.mark_sorted(i + 1)
    return i + 1


def _sift_down(seq, counter, lo, n, i):
    while True:
        largest = i
        left, right = 2 * i + 1, 2 * i + 2
        if left < n and (yield from _compare(
                counter, seq[lo + left].value, seq[lo + largest].value, (lo + i, lo + left))) > 0:
            largest = left
        if right < n and (yield from _compare(
                counter, seq[lo + right].value, seq[lo + largest].value, (lo + i, lo + right))) > 0:
            largest = right
        if largest == i:
            return
        yield from _swap(seq, counter, lo + i, lo + largest)
        i = largest


def _heap_range(seq, counter, lo, hi):
    n = hi - lo + 1
    for i in range(n // 2 - 1, -1, -1):
        yield from _sift_down(seq, counter, lo, n, i)
    for i in range(n - 1, 0, -1):
        yield from _swap(seq, counter, lo, lo + i)
        seq.mark_sorted(lo + i)
        yield from _sift_down(seq, counter, lo, i, 0)


# ============================================================
# ===================== SORTING ALGORITHMS ===================
# ============================================================

def bubble_sort(seq, counter):
    # no early exit: always n(n-1)/2 comparisons
    n = len(seq)
    for i in range(n - 1):
        for j in range(n - i - 1):
            if (yield from _compare(counter, seq[j].value, seq[j + 1].value, (j, j + 1))) > 0:
                yield from _swap(seq, counter, j, j + 1)
        seq.mark_sorted(n - i - 1)
    if n:
        seq.mark_sorted(0)


def selection_sort(seq, counter):
    n = len(seq)
    for i in range(n - 1):
        mi = i
        for j in range(i + 1, n):
            if (yield from _compare(counter, seq[j].value, seq[mi].value, (mi, j))) < 0:
                mi = j
        if mi != i:
            yield from _swap(seq, counter, i, mi)
        seq.mark_sorted(i)
    if n:
        seq.mark_sorted(n - 1)


def insertion_sort(seq, counter):
    yield from _insertion_range(seq, counter, 0, len(seq) - 1)


def merge_sort(seq, counter):
    def _ms(lo, hi):
        if lo >= hi:
            return
        mid = (lo + hi) // 2
        yield from _ms(lo, mid)
        yield from _ms(mid + 1, hi)
        yield from _merge(seq, counter, lo, mid, hi)
    yield from _ms(0, len(seq) - 1)


def quick_sort(seq, counter):
    # explicit stack: a sorted input would otherwise recurse n deep
    stack = [(0, len(seq) - 1)]
    while stack:
        lo, hi = stack.pop()
        if lo >= hi:
            continue
        p = yield from _partition(seq, counter, lo, hi)
        stack.append((p + 1, hi))
        stack.append((lo, p - 1))


def heap_sort(seq, counter):
    if len(seq) == 0:
        return
    yield from _heap_range(seq, counter, 0, len(seq) - 1)
    seq.mark_sorted(0)


def shell_sort(seq, counter):
    n = len(seq)
    gap = n // 2
    while gap > 0:
        for i in range(gap, n):
            temp = seq[i]
            j = i
            while j >= gap:
                if (yield from _compare(counter, seq[j - gap].value, temp.value, (j, j - gap))) <= 0:
                    break
                yield from _write(seq, counter, j, seq[j - gap])
                j -= gap
            if j != i:
                yield from _write(seq, counter, j, temp)
        gap //= 2


def comb_sort(seq, counter):
    n = len(seq)
    gap = n
    done = False
    while not done:
        gap = int(gap / COMB_SHRINK)
        if gap <= 1:
            gap = 1
            done = True
        for i in range(n - gap):
            if (yield from _compare(counter, seq[i].value, seq[i + gap].value, (i, i + gap))) > 0:
                yield from _swap(seq, counter, i, i + gap)
                done = False


def cocktail_sort(seq, counter):
    start, end = 0, len(seq) - 1
    swapped = True
    while swapped:
        swapped = False
        for i in range(start, end):
            if (yield from _compare(counter, seq[i].value, seq[i + 1].value, (i, i + 1))) > 0:
                yield from _swap(seq, counter, i, i + 1)
                swapped = True
        if not swapped:
            break
        swapped = False
        end -= 1
        seq.mark_sorted(end + 1)
        for i in range(end - 1, start - 1, -1):
            if (yield from _compare(counter, seq[i].value, seq[i + 1].value, (i, i + 1))) > 0:
                yield from _swap(seq, counter, i, i + 1)
                swapped = True
        seq.mark_sorted(start)
        start += 1


def gnome_sort(seq, counter):
    n = len(seq)
    pos = 0
    while pos < n:
        if pos == 0:
            pos += 1
            continue
        if (yield from _compare(counter, seq[pos].value, seq[pos - 1].value, (pos, pos - 1))) >= 0:
            pos += 1
        else:
            yield from _swap(seq, counter, pos, pos - 1)
            pos -= 1


def _cycle_position(seq, counter, start, item):
    """Where ``item`` belongs, skipping past equal values already placed."""
    n = len(seq)
    pos = start
    for i in range(start + 1, n):
        if (yield from _compare(counter, seq[i].value, item.value, (start, i))) < 0:
            pos += 1
    if pos == start:
        return pos
    # the duplicate scan is bounded by the end of the sequence
    while (yield from _compare(counter, seq[pos].value, item.value, (pos,))) == 0:
        pos += 1
        if pos == n:
            raise RuntimeError(f"duplicate scan for cycle {start} ran past the end")
    return pos


def cycle_sort(seq, counter):
    n = len(seq)
    for start in range(n - 1):
        item = seq[start]
        pos = yield from _cycle_position(seq, counter, start, item)
        if pos == start:
            seq.mark_sorted(start)
            continue
        displaced = seq[pos]
        yield from _write(seq, counter, pos, item)
        item = displaced
        rotations = 1
        while pos != start:
            if rotations > n:
                raise RuntimeError(f"cycle starting at {start} did not close")
            pos = yield from _cycle_position(seq, counter, start, item)
            displaced = seq[pos]
            yield from _write(seq, counter, pos, item)
            item = displaced
            rotations += 1
        seq.mark_sorted(start)
    if n:
        seq.mark_sorted(n - 1)


def _flip(seq, counter, k):
    lo, hi = 0, k
    while lo < hi:
        yield from _swap(seq, counter, lo, hi)
        lo += 1
        hi -= 1


def pancake_sort(seq, counter):
    n = len(seq)
    for size in range(n, 1, -1):
        mi = 0
        for i in range(1, size):
            if (yield from _compare(counter, seq[i].value, seq[mi].value, (i, mi))) > 0:
                mi = i
        if mi != size - 1:
            if mi != 0:
                yield from _flip(seq, counter, mi)
            yield from _flip(seq, counter, size - 1)
        seq.mark_sorted(size - 1)
    if n:
        seq.mark_sorted(0)


def tim_sort(seq, counter):
    n = len(seq)
    for start in range(0, n, TIM_RUN):
        yield from _insertion_range(seq, counter, start, min(start + TIM_RUN - 1, n - 1))
    size = TIM_RUN
    while size < n:
        for lo in range(0, n, 2 * size):
            mid = lo + size - 1
            hi = min(lo + 2 * size - 1, n - 1)
            if mid < hi:
                yield from _merge(seq, counter, lo, mid, hi)
        size *= 2


def intro_sort(seq, counter):
    n = len(seq)
    if n < 2:
        return
    depth_limit = 2 * (n.bit_length() - 1)      # 2 * floor(log2 n)
    stack = [(0, n - 1, depth_limit)]
    while stack:
        lo, hi, depth = stack.pop()
        size = hi - lo + 1
        if size <= 1:
            continue
        if size <= INTRO_INSERTION_THRESHOLD:
            yield from _insertion_range(seq, counter, lo, hi)
        elif depth == 0:
            yield from _heap_range(seq, counter, lo, hi)
        else:
            p = yield from _partition(seq, counter, lo, hi)
            stack.append((p + 1, hi, depth - 1))
            stack.append((lo, p - 1, depth - 1))


def bitonic_sort(seq, counter):
    # Splitting at the greatest power of two below cnt lets the network
    # handle any length; for powers of two it is the classic network.
    def _merge_net(lo, cnt, ascending):
        if cnt <= 1:
            return
        k = 1 << ((cnt - 1).bit_length() - 1)
        for i in range(lo, lo + cnt - k):
            d = yield from _compare(counter, seq[i].value, seq[i + k].value, (i, i + k))
            if (d > 0 and ascending) or (d < 0 and not ascending):
                yield from _swap(seq, counter, i, i + k)
        yield from _merge_net(lo, k, ascending)
        yield from _merge_net(lo + k, cnt - k, ascending)

    def _bs(lo, cnt, ascending):
        if cnt <= 1:
            return
        k = cnt // 2
        yield from _bs(lo, k, not ascending)
        yield from _bs(lo + k, cnt - k, ascending)
        yield from _merge_net(lo, cnt, ascending)

    yield from _bs(0, len(seq), True)


def _radix_keys(seq) -> list:
    """
    Non-negative integer keys that order exactly like the values.

    Integral values are used as they are. Otherwise the IEEE-754 bit pattern
    of each float is the key: for non-negative doubles it is monotonic.
    """
    values = np.fromiter((e.value for e in seq), dtype=np.float64, count=len(seq)) + 0.0
    if np.all(np.floor(values) == values):
        return values.astype(np.int64).tolist()
    return values.view(np.int64).tolist()


def _counting_pass(seq, counter, keys, exp):
    n = len(seq)
    count = [0] * RADIX_BASE
    for i in range(n):
        count[(keys[i] // exp) % RADIX_BASE] += 1
        yield Op.READ, (i,)
    for d in range(1, RADIX_BASE):
        count[d] += count[d - 1]
    out = [None] * n
    out_keys = [0] * n
    for i in range(n - 1, -1, -1):
        d = (keys[i] // exp) % RADIX_BASE
        count[d] -= 1
        out[count[d]] = seq[i]
        out_keys[count[d]] = keys[i]
        yield Op.READ, (i,)
    for i in range(n):
        yield from _write(seq, counter, i, out[i])
    return out_keys


def radix_sort(seq, counter):
    n = len(seq)
    if n == 0:
        return
    keys = _radix_keys(seq)
    top = keys[0]
    for i in range(1, n):
        if (yield from _compare(counter, keys[i], top, (i,))) > 0:
            top = keys[i]
    exp = 1
    while top // exp > 0:
        keys = yield from _counting_pass(seq, counter, keys, exp)
        exp *= RADIX_BASE


# ============================================================
# ========================= REGISTRY =========================
# ============================================================

@dataclass(frozen=True)
class AlgorithmInfo:
    """Reference card for one algorithm, shown by ``sortrace info``."""
    name: str
    best: str
    average: str
    worst: str
    space: str
    properties: str
    description: str

    @property
    def stable(self) -> bool:
        return self.properties.split(",")[0].strip() == "Stable"


# declaration order is the menu, benchmark and tie-break order
ALGORITHM_INFO = {
    "bubble": AlgorithmInfo(
        "Bubble Sort", "O(n)", "O(n²)", "O(n²)", "O(1)", "Stable, In-place",
        "Repeatedly steps through the list, compares adjacent elements and swaps "
        "them if they are in the wrong order, until a pass makes no change."),
    "selection": AlgorithmInfo(
        "Selection Sort", "O(n²)", "O(n²)", "O(n²)", "O(1)", "Unstable, In-place",
        "Splits the input into a sorted and an unsorted region and keeps moving "
        "the smallest unsorted element to the end of the sorted one."),
    "insertion": AlgorithmInfo(
        "Insertion Sort", "O(n)", "O(n²)", "O(n²)", "O(1)", "Stable, In-place",
        "Builds the result one item at a time, inserting each element into its "
        "place in the already sorted prefix."),
    "merge": AlgorithmInfo(
        "Merge Sort", "O(n log n)", "O(n log n)", "O(n log n)", "O(n)", "Stable, Out-of-place",
        "Divide and conquer: halves the array, sorts both halves and merges the "
        "sorted halves back together."),
    "quick": AlgorithmInfo(
        "Quick Sort", "O(n log n)", "O(n log n)", "O(n²)", "O(log n)", "Unstable, In-place",
        "Picks a pivot, partitions smaller elements before it and larger ones "
        "after it, then sorts both partitions."),
    "heap": AlgorithmInfo(
        "Heap Sort", "O(n log n)", "O(n log n)", "O(n log n)", "O(1)", "Unstable, In-place",
        "Builds a max heap, then repeatedly moves the maximum to the end and "
        "restores the heap."),
    "shell": AlgorithmInfo(
        "Shell Sort", "O(n log n)", "O(n^(4/3))", "O(n^(3/2))", "O(1)", "Unstable, In-place",
        "Insertion sort over far-apart elements: starts with a large gap and "
        "halves it down to 1."),
    "comb": AlgorithmInfo(
        "Comb Sort", "O(n log n)", "O(n²/2^p)", "O(n²)", "O(1)", "Unstable, In-place",
        "Bubble sort with gaps larger than 1; the gap shrinks by a factor of 1.3 "
        "until it reaches 1."),
    "cocktail": AlgorithmInfo(
        "Cocktail Sort", "O(n)", "O(n²)", "O(n²)", "O(1)", "Stable, In-place",
        "Bubble sort that alternates forward and backward passes."),
    "gnome": AlgorithmInfo(
        "Gnome Sort", "O(n)", "O(n²)", "O(n²)", "O(1)", "Stable, In-place",
        "Like insertion sort, but an element reaches its place through a series "
        "of adjacent swaps."),
    "cycle": AlgorithmInfo(
        "Cycle Sort", "O(n²)", "O(n²)", "O(n²)", "O(1)", "Unstable, In-place",
        "Rotates each cycle of the permutation into place; optimal in the number "
        "of memory writes."),
    "pancake": AlgorithmInfo(
        "Pancake Sort", "O(n)", "O(n²)", "O(n²)", "O(1)", "Unstable, In-place",
        "Only reverses prefixes: flips the maximum to the front, then flips it "
        "into its final position."),
    "tim": AlgorithmInfo(
        "Tim Sort", "O(n)", "O(n log n)", "O(n log n)", "O(n)", "Stable, Hybrid",
        "Insertion-sorts short runs, then merges them bottom-up. The default sort "
        "of Python and Java."),
    "intro": AlgorithmInfo(
        "Intro Sort", "O(n log n)", "O(n log n)", "O(n log n)", "O(log n)", "Unstable, Hybrid",
        "Quicksort that switches to heapsort past a depth limit and to insertion "
        "sort for small partitions."),
    "bitonic": AlgorithmInfo(
        "Bitonic Sort", "O(log²n)", "O(log²n)", "O(log²n)", "O(log²n)", "Unstable, Parallel",
        "Builds bitonic sequences and merges them through a comparison network; "
        "efficient on parallel hardware."),
    "radix": AlgorithmInfo(
        "Radix Sort (LSD)", "O(nk)", "O(nk)", "O(nk)", "O(n+k)", "Stable, Out-of-place",
        "Sorts by individual digits, least significant digit first, with a stable "
        "counting pass per digit."),
}

ALGORITHMS = [(info.name, key) for key, info in ALGORITHM_INFO.items()]

ALGORITHM_KEYS = tuple(ALGORITHM_INFO)

STABLE_ALGORITHMS = frozenset(key for key, info in ALGORITHM_INFO.items() if info.stable)

_BODIES = {
    "bubble":    bubble_sort,
    "selection": selection_sort,
    "insertion": insertion_sort,
    "merge":     merge_sort,
    "quick":     quick_sort,
    "heap":      heap_sort,
    "shell":     shell_sort,
    "comb":      comb_sort,
    "cocktail":  cocktail_sort,
    "gnome":     gnome_sort,
    "cycle":     cycle_sort,
    "pancake":   pancake_sort,
    "tim":       tim_sort,
    "intro":     intro_sort,
    "bitonic":   bitonic_sort,
    "radix":     radix_sort,
}


def validate_algorithm(key: str) -> str:
    if key not in _BODIES:
        raise InvalidConfigurationError(
            f"Unknown algorithm '{key}'. Expected one of {', '.join(ALGORITHM_KEYS)}."
        )
    return key


def algorithm_info(key: str) -> AlgorithmInfo:
    return ALGORITHM_INFO[validate_algorithm(key)]


def algorithm_name(key: str) -> str:
    return algorithm_info(key).name


def get_generator(key, seq, counter):
    return _BODIES[validate_algorithm(key)](seq, counter)


def run_to_completion(key, seq, counter=None):
    """Drain an algorithm with no scheduling at all; returns the counter."""
    counter = counter if counter is not None else Tally()
    for _ in get_generator(key, seq, counter):
        pass
    return counter
