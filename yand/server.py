import itertools as it, operator as op, functools as ft
from time import monotonic
import threading, logging

from . import core, __version__
from .overrides import OverrideResolver
from .timers import TimeoutScheduler
from .store import NotificationStore
from .stack import StackManager, Remove

log = logging.getLogger(__name__)
close_reasons = core.close_reasons


class NotificationMethods:
	'''Protocol-level handling of notification calls, independent of dbus bindings.

		Inbound calls, rendering surface input and timer expiry all end up
			in methods here, which serialize on a single lock around the store,
			and every state change is reported via NotificationClosed / ActionInvoked
			methods, which dbus bindings turn into signals.

		Rendering surface must have upsert(nid, entry, note), remove(nid)
			and reload(config) methods, and can be attached after init.'''

	capabilities = 'action-icons', 'actions', 'body', 'body-markup', 'icon-static', 'persistence'
	server_info = 'yand', 'yand', __version__, '1.2'

	surface = None

	def __init__(self, controller, surface=None, clock=monotonic, id_max=core.id_max):
		self._lock = threading.RLock()
		self.controller = controller
		self.resolver = OverrideResolver(controller.get)
		self.scheduler = TimeoutScheduler(clock=clock)
		self.store = NotificationStore(self.resolver, self.scheduler, id_max=id_max)
		self.stack = StackManager()
		if surface: self.attach_surface(surface)

	def attach_surface(self, surface):
		with self._lock:
			self.surface = surface
			self.stack.entries.clear() # surface has to get full layout
			surface.reload(self.controller.config)
			self._relayout()


	def GetServerInformation(self):
		return self.server_info

	def GetCapabilities(self):
		return sorted(self.capabilities)

	def NotificationClosed(self, nid, reason):
		log.debug( 'NotificationClosed signal'
			' (id: %s, reason: %s)', nid, close_reasons.by_id(reason) )

	def ActionInvoked(self, nid, action_key):
		log.debug('ActionInvoked signal (id: %s, action: %r)', nid, action_key)


	def Notify(self, app_name, nid, icon, summary, body, actions, hints, timeout):
		# Validation is done before lock/store, so that malformed calls can't change anything
		actions = core.action_pairs(actions)
		requested_timeout = core.timeout_from_wire(timeout)
		log.debug( 'Notify call: %s', core.repr_trunc_rec(dict(
			app_name=app_name, replaces_id=nid, summary=summary,
			body=body, actions=actions, timeout=timeout )) )
		with self._lock:
			nid = self.store.replace( int(nid), str(app_name),
				str(summary), str(body), actions, str(icon), requested_timeout, hints )
			self._relayout(changed=[nid])
		return nid

	def CloseNotification(self, nid):
		log.debug('CloseNotification call (id: %s)', nid)
		self.close(int(nid), reason=close_reasons.closed)

	def List(self):
		with self._lock: return list(e.nid for e in self.stack.stack)


	def close(self, nid, reason=close_reasons.undefined):
		'''Close notification, emitting exactly one NotificationClosed for it.
			Returns False if there was no such notification (e.g. already closed).'''
		with self._lock:
			note = self.store.close(nid, reason)
			if note is None:
				log.debug( 'Ignoring close for missing notification'
					' (id: %s, reason: %s)', nid, close_reasons.by_id(reason) )
				return False
			self._relayout()
			self.NotificationClosed(nid, reason)
			return True

	def dismissed(self, nid):
		'Rendering surface input - user closed the notification.'
		self.close(nid, reason=close_reasons.dismissed)

	def action_clicked(self, nid, action_key):
		'''Rendering surface input - user activated an action.
			ActionInvoked is always emitted before NotificationClosed for it,
				and resident notifications are not closed at all.'''
		with self._lock:
			note = self.store.get(nid)
			if note is None:
				log.debug('Action %r for missing notification (id: %s)', action_key, nid)
				return
			if action_key not in map(op.itemgetter(0), note.actions):
				log.warning('Unknown action %r for notification (id: %s)', action_key, nid)
				return
			self.ActionInvoked(nid, action_key)
			if not note.resident: self.close(nid, reason=close_reasons.dismissed)

	def body_clicked(self, nid):
		'Rendering surface input - click on notification itself, not on a button.'
		with self._lock:
			note = self.store.get(nid)
			if note is None: return
			if note.has_default_action: self.action_clicked(nid, core.default_action)
			else: self.dismissed(nid)

	def expire_due(self, now=None):
		'Close all notifications with passed deadlines, returning list of their ids.'
		expired = list()
		with self._lock:
			for nid in self.scheduler.pop_expired(now):
				if self.close(nid, reason=close_reasons.expired): expired.append(nid)
				else: log.debug('Expiry for already-closed notification (id: %s)', nid)
		return expired


	def reload(self, config=None):
		'''Activate new config snapshot, or re-read it from file, if None.
			Raises ConfigError on failure, with old config still in effect.
			Displayed notifications only get re-positioned, their timeouts stay the same.'''
		with self._lock:
			if config is None: config = self.controller.reload_file()
			else: config = self.controller.reload(config)
			if self.surface:
				try: self.surface.reload(config)
				except Exception: log.exception('Failed to reload rendering surface')
			self._relayout()
		return config


	def _relayout(self, changed=()):
		cmds = self.stack.relayout(self.store.get_visible(), self.controller.config, changed)
		if self.surface:
			for cmd in cmds:
				try:
					if isinstance(cmd, Remove): self.surface.remove(cmd.nid)
					else: self.surface.upsert(cmd.nid, cmd.entry, cmd.note)
				except Exception: log.exception('Failed to apply layout command: %r', cmd)
		return cmds
