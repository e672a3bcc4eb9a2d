import itertools as it, operator as op, functools as ft
import logging

from . import core

log = logging.getLogger(__name__)
note_states = core.note_states


class NotificationStore:
	'''Authoritative table of live notifications, keyed by id.

		All mutation of Notification objects happens here, along with
			registering/cancelling their deadlines in TimeoutScheduler, so that
			store and timers can't get out of sync.
		Not thread-safe by itself - caller is expected to serialize access.'''

	def __init__(self, resolver, scheduler, id_max=core.id_max):
		self.resolver, self.scheduler = resolver, scheduler
		self.id_max = id_max
		self._notes, self._timers = dict(), dict()
		self._id_next, self._seq = 1, it.count()

	def __len__(self): return len(self._notes)
	def __contains__(self, nid): return nid in self._notes
	def get(self, nid): return self._notes.get(nid)
	def ids(self): return list(self._notes)

	def get_visible(self):
		return list( note for note in self._notes.values()
			if note.state == note_states.visible )


	def _alloc_id(self):
		# Wraps past id_max back to 1, skipping ids that are still in use.
		# len(notes)+1 probes is always enough to find a free one, if there is any.
		for n in range(min(len(self._notes) + 1, self.id_max)):
			nid = self._id_next
			self._id_next = nid + 1 if nid < self.id_max else 1
			if nid not in self._notes: return nid
		raise core.IdSpaceExhausted(
			'All {} notification ids are in use'.format(self.id_max) )

	def _resolve(self, note, requested_timeout):
		note.requested_timeout = requested_timeout
		note.effective_timeout, note.max_lines = self.resolver.resolve(
			note.app_name, requested_timeout, buttons=len(note.buttons) )

	def _arm(self, note):
		if note.effective_timeout:
			self._timers[note.id] = self.scheduler.schedule(note.id, note.effective_timeout)

	def _disarm(self, nid):
		self.scheduler.cancel(self._timers.pop(nid, None))


	def create( self, app_name, summary='', body='',
			actions=None, icon='', requested_timeout=None, hints=None ):
		note = core.Notification(app_name, summary, body, actions, icon, hints)
		note.id, note.seq = self._alloc_id(), next(self._seq)
		self._resolve(note, requested_timeout)
		self._notes[note.id] = note
		self._arm(note)
		note.state = note_states.visible
		log.debug( 'Created notification (id: %s, timeout: %ss, max_lines: %s)',
			note.id, note.effective_timeout, note.max_lines )
		return note.id

	def replace( self, nid, app_name, summary='', body='',
			actions=None, icon='', requested_timeout=None, hints=None ):
		'''Update notification content in-place, keeping its id and creation time,
			so that it stays on the same place in the stack.
			Same as create() for nid=0 or unknown ids, returning new id in that case.'''
		note = self._notes.get(nid) if nid else None
		if note is None or note.state != note_states.visible:
			return self.create(app_name, summary, body, actions, icon, requested_timeout, hints)
		note.update(app_name, summary, body, actions, icon, hints)
		self._resolve(note, requested_timeout)
		self._disarm(nid)
		self._arm(note)
		log.debug( 'Replaced notification (id: %s, timeout: %ss, max_lines: %s)',
			nid, note.effective_timeout, note.max_lines )
		return nid

	def close(self, nid, reason=core.close_reasons.undefined):
		'''Remove notification and cancel its deadline.
			Returns removed Notification, or None if there was no such id,
				which makes any repeated close() for same id a no-op.'''
		note = self._notes.get(nid)
		if note is None or note.state == note_states.closing: return
		note.state = note_states.closing
		self._disarm(nid)
		del self._notes[nid]
		log.debug( 'Removed notification (id: %s,'
			' reason: %s)', nid, core.close_reasons.by_id(reason) )
		return note
