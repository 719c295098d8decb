"""Progress reporting and cooperative cancellation for mining runs."""
import threading
from typing import Callable, Optional

from tqdm.auto import tqdm

from subgroup_miner.exceptions import CancellationError


class ExecutionMonitor:
    """
    Collaborator handed to the encoder and the search engine.

    Progress fractions are clamped to [0, 1] and never decrease. Cancellation
    is requested either through ``cancel()``, a shared ``threading.Event`` or
    a callable returning True.

    Args:
        progress_callback: Called as ``callback(fraction, message)``
        cancel_event: Event or zero-argument callable signalling abort
        verbose: If True, show a tqdm progress bar
    """

    def __init__(
            self,
            progress_callback: Callable[[float, str], None] = None,
            cancel_event=None,
            verbose: bool = False,
            desc: str = "Mining"
    ):
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.verbose = verbose
        self.desc = desc
        self.fraction = 0.0
        self.message = ''
        self._lock = threading.Lock()
        self._bar = tqdm(total=100, desc=desc, unit='%') if verbose else None

    def report_progress(self, fraction: float, message: str = '') -> None:
        with self._lock:
            fraction = min(max(float(fraction), self.fraction), 1.0)
            delta = fraction - self.fraction
            self.fraction = fraction
            self.message = message
        if self._bar is not None:
            self._bar.update(delta * 100)
            if message:
                self._bar.set_postfix_str(message, refresh=False)
        if self.progress_callback is not None:
            self.progress_callback(fraction, message)

    def is_cancelled(self) -> bool:
        if hasattr(self.cancel_event, 'is_set'):
            return self.cancel_event.is_set()
        return bool(self.cancel_event())

    def check_cancelled(self) -> None:
        if self.is_cancelled():
            raise CancellationError("Execution cancelled by caller")

    def cancel(self) -> None:
        if not hasattr(self.cancel_event, 'set'):
            raise TypeError("Cannot cancel through a callable cancel check")
        self.cancel_event.set()

    def sub_progress(self, weight: float) -> 'SubProgressMonitor':
        """Child monitor whose [0, 1] range maps onto the next ``weight`` of this one."""
        return SubProgressMonitor(self, self.fraction, weight)

    def reset(self) -> None:
        """Start a new run at 0; the cancel event and callback are kept."""
        with self._lock:
            self.fraction = 0.0
            self.message = ''
        if self._bar is not None:
            self._bar.close()
            self._bar = tqdm(total=100, desc=self.desc, unit='%')

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class SubProgressMonitor:
    """Slice of a parent monitor; cancellation is shared with the parent."""

    def __init__(self, parent, offset: float, weight: float):
        self.parent = parent
        self.offset = offset
        self.weight = weight

    @property
    def fraction(self) -> float:
        if self.weight == 0:
            return 0.0
        return min(max((self.parent.fraction - self.offset) / self.weight, 0.0), 1.0)

    def report_progress(self, fraction: float, message: str = '') -> None:
        fraction = min(max(float(fraction), 0.0), 1.0)
        self.parent.report_progress(self.offset + fraction * self.weight, message)

    def is_cancelled(self) -> bool:
        return self.parent.is_cancelled()

    def check_cancelled(self) -> None:
        self.parent.check_cancelled()

    def cancel(self) -> None:
        self.parent.cancel()

    def sub_progress(self, weight: float) -> 'SubProgressMonitor':
        return SubProgressMonitor(self, self.fraction, weight)

    def reset(self) -> None:
        # the parent owns the range
        pass

    def close(self) -> None:
        pass


def ensure_monitor(monitor: Optional[ExecutionMonitor]) -> ExecutionMonitor:
    return monitor if monitor is not None else ExecutionMonitor()
