import itertools as it, operator as op, functools as ft
import heapq, logging
from time import monotonic

log = logging.getLogger(__name__)


class TimerHandle:
	__slots__ = 'nid', 'deadline', 'seq', 'active'

	def __init__(self, nid, deadline, seq):
		self.nid, self.deadline, self.seq, self.active = nid, deadline, seq, True

	def __repr__(self):
		return '<TimerHandle[{}] nid={} deadline={:.3f}{}>'.format(
			self.seq, self.nid, self.deadline, '' if self.active else ' inactive' )


class TimeoutScheduler:
	'''One-shot deadlines, delivered in (deadline, scheduling order) order.

		Does not run any timers itself - pop_expired() must be called when
			next_deadline() passes, and wakeup(deadline_or_None) callback is
			invoked whenever that earliest deadline changes, so that the caller
			can (re-)arm a single main loop timer for it.
		Cancelled handles are dropped lazily, cancelling
			fired or already-cancelled handle is a no-op.'''

	compact_ratio = 0.5

	def __init__(self, clock=monotonic, wakeup=None):
		self.clock, self.wakeup = clock, wakeup
		self._heap, self._seq = list(), it.count()
		self._active = self._cancelled = 0
		self._next = None

	def __len__(self): return self._active

	def schedule(self, nid, duration):
		h = TimerHandle(nid, self.clock() + duration, next(self._seq))
		heapq.heappush(self._heap, (h.deadline, h.seq, h))
		self._active += 1
		self._changed()
		return h

	def cancel(self, h):
		if h is None or not h.active: return
		h.active = False
		self._active -= 1
		self._cancelled += 1
		if self._cancelled > len(self._heap) * self.compact_ratio:
			self._heap = list(e for e in self._heap if e[2].active)
			heapq.heapify(self._heap)
			self._cancelled = 0
		self._changed()

	def _prune(self):
		while self._heap and not self._heap[0][2].active:
			heapq.heappop(self._heap)
			self._cancelled -= 1

	def next_deadline(self):
		self._prune()
		return self._heap[0][0] if self._heap else None

	def pop_expired(self, now=None):
		'Return list of ids with deadlines at or before "now", earliest first.'
		if now is None: now = self.clock()
		expired = list()
		while True:
			self._prune()
			if not self._heap or self._heap[0][0] > now: break
			h = heapq.heappop(self._heap)[2]
			h.active = False
			self._active -= 1
			expired.append(h.nid)
		if expired: self._changed()
		return expired

	def _changed(self):
		deadline = self.next_deadline()
		if deadline == self._next: return
		self._next = deadline
		if self.wakeup: self.wakeup(deadline)
