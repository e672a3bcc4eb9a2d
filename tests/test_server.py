"""Tests for NotificationMethods - protocol calls, signals, expiry and reload."""

import threading, unittest

from yand import core

from .common import make_server, notify


closed = core.close_reasons


class TestNotify(unittest.TestCase):

	def setUp(self):
		self.server, self.surface, self.clock = make_server()

	def test_server_info(self):
		name, vendor, version, proto_version = self.server.GetServerInformation()
		self.assertEqual((name, proto_version), ('yand', '1.2'))
		self.assertIn('actions', self.server.GetCapabilities())
		self.assertIn('body-markup', self.server.GetCapabilities())

	def test_unique_ids(self):
		ids = list(notify(self.server, f'n{n}') for n in range(10))
		self.assertEqual(len(set(ids)), 10)
		self.assertNotIn(0, ids)
		self.assertEqual(self.server.List(), ids)

	def test_odd_actions_rejected(self):
		"""Malformed call raises InvalidArgs and changes nothing."""
		notify(self.server)
		self.surface.cmds.clear()
		with self.assertRaises(core.InvalidArgs):
			notify(self.server, actions=['key', 'label', 'orphan'])
		self.assertEqual(len(self.server.store), 1)
		self.assertEqual(self.surface.cmds, [])
		self.assertEqual(self.server.signals, [])

	def test_replace_in_place(self):
		"""Replacement keeps id and stack position, emitting no signals."""
		a, b, c = (notify(self.server, f'n{n}') for n in range(3))
		self.surface.cmds.clear()
		self.assertEqual(notify(self.server, 'updated', nid=b), b)
		self.assertEqual(self.server.List(), [a, b, c])
		self.assertEqual([cmd[:2] for cmd in self.surface.cmds], [('upsert', b)])
		self.assertEqual(self.server.store.get(b).summary, 'updated')
		self.assertEqual(self.server.signals, [])

	def test_replace_unknown_id(self):
		nid = notify(self.server, nid=4242)
		self.assertNotEqual(nid, 4242)
		self.assertEqual(self.server.List(), [nid])

	def test_close_notification(self):
		a, b = notify(self.server), notify(self.server)
		self.server.CloseNotification(a)
		self.assertEqual(self.server.signals, [('closed', a, closed.closed)])
		self.assertEqual(self.server.List(), [b])
		self.assertIn(('remove', a), self.surface.cmds)

	def test_close_twice(self):
		"""Exactly one NotificationClosed per notification."""
		nid = notify(self.server)
		self.server.CloseNotification(nid)
		self.server.CloseNotification(nid)
		self.server.dismissed(nid)
		self.assertEqual(self.server.signals, [('closed', nid, closed.closed)])

	def test_close_unknown(self):
		self.server.CloseNotification(12345)
		self.assertEqual(self.server.signals, [])
		self.assertEqual(self.surface.cmds, [])

	def test_surface_failure(self):
		"""Broken rendering surface doesn't fail the protocol call."""
		def upsert(*args): raise RuntimeError('no display')
		self.surface.upsert = upsert
		nid = notify(self.server)
		self.assertEqual(self.server.List(), [nid])

	def test_concurrent_notify(self):
		ids, lock = list(), threading.Lock()
		def worker():
			for n in range(50):
				nid = notify(self.server)
				with lock: ids.append(nid)
		threads = list(threading.Thread(target=worker) for n in range(4))
		for t in threads: t.start()
		for t in threads: t.join()
		self.assertEqual(len(ids), 200)
		self.assertEqual(len(set(ids)), 200)
		self.assertEqual(sorted(self.server.List()), sorted(ids))


class TestExpiry(unittest.TestCase):

	def setUp(self):
		self.server, self.surface, self.clock = make_server()

	def test_default_timeout(self):
		nid = notify(self.server)
		self.assertEqual(self.server.expire_due(self.clock.advance(9.5)), [])
		self.assertEqual(self.server.expire_due(self.clock.advance(0.5)), [nid])
		self.assertEqual(self.server.signals, [('closed', nid, closed.expired)])
		self.assertEqual(self.server.List(), [])

	def test_requested_timeout(self):
		nid = notify(self.server, timeout=2000)
		self.assertEqual(self.server.expire_due(self.clock.advance(2)), [nid])

	def test_zero_never_expires(self):
		nid = notify(self.server, timeout=0)
		self.assertEqual(self.server.expire_due(self.clock.advance(10**6)), [])
		self.assertEqual(self.server.List(), [nid])

	def test_close_cancels_timer(self):
		nid = notify(self.server)
		self.server.CloseNotification(nid)
		self.assertEqual(len(self.server.scheduler), 0)
		self.assertEqual(self.server.expire_due(self.clock.advance(20)), [])
		self.assertEqual(self.server.signals, [('closed', nid, closed.closed)])

	def test_replace_rearms(self):
		nid = notify(self.server)
		self.clock.advance(8)
		notify(self.server, 'again', nid=nid)
		self.assertEqual(self.server.expire_due(self.clock.advance(8)), [])
		self.assertEqual(self.server.expire_due(self.clock.advance(2)), [nid])

	def test_app_override(self):
		"""Per-app timeout applies when caller didn't request one."""
		config = core.Config(overrides=dict(
			discord=core.OverrideEntry('discord', 5, None) ))
		server, surface, clock = make_server(config)
		a = notify(server, app_name='discord')
		b = notify(server, app_name='other')
		self.assertEqual(server.expire_due(clock.advance(5)), [a])
		self.assertEqual(server.expire_due(clock.advance(5)), [b])

	def test_actionable_persists(self):
		nid = notify(self.server, actions=['yes', 'Yes', 'no', 'No'])
		self.assertEqual(self.server.expire_due(self.clock.advance(100)), [])
		self.assertEqual(self.server.List(), [nid])


class TestInput(unittest.TestCase):

	def setUp(self):
		self.server, self.surface, self.clock = make_server()

	def test_action_then_close(self):
		"""ActionInvoked comes before NotificationClosed."""
		nid = notify(self.server, actions=['reply', 'Reply'])
		self.server.action_clicked(nid, 'reply')
		self.assertEqual( self.server.signals,
			[('action', nid, 'reply'), ('closed', nid, closed.dismissed)] )

	def test_resident(self):
		nid = notify(self.server, actions=['play', 'Play'], hints={'resident': True})
		self.server.action_clicked(nid, 'play')
		self.assertEqual(self.server.signals, [('action', nid, 'play')])
		self.assertEqual(self.server.List(), [nid])

	def test_unknown_action(self):
		nid = notify(self.server, actions=['reply', 'Reply'])
		self.server.action_clicked(nid, 'delete')
		self.server.action_clicked(nid + 1, 'reply')
		self.assertEqual(self.server.signals, [])

	def test_body_click_default_action(self):
		nid = notify(self.server, actions=['default', 'Open'])
		self.server.body_clicked(nid)
		self.assertEqual( self.server.signals,
			[('action', nid, 'default'), ('closed', nid, closed.dismissed)] )

	def test_body_click_dismiss(self):
		nid = notify(self.server)
		self.server.body_clicked(nid)
		self.assertEqual(self.server.signals, [('closed', nid, closed.dismissed)])


class TestReload(unittest.TestCase):

	def setUp(self):
		self.server, self.surface, self.clock = make_server()

	def test_reposition_only(self):
		"""Reload moves displayed notifications, but keeps their timeouts."""
		a, b = notify(self.server), notify(self.server)
		pos = self.server.stack.entries[b].position
		self.surface.cmds.clear()
		config = self.server.reload(core.Config(spacing=50, timeout=60))
		self.assertEqual(config.version, 1)
		self.assertEqual(self.surface.configs[-1], config)
		self.assertEqual(self.server.stack.entries[b].position, pos + 40)
		self.assertEqual([cmd[:2] for cmd in self.surface.cmds], [('upsert', b)])
		self.assertEqual(self.server.signals, [])
		self.assertEqual(self.server.expire_due(self.clock.advance(10)), [a, b])

	def test_new_config_for_new_notes(self):
		self.server.reload(core.Config(timeout=3))
		nid = notify(self.server)
		self.assertEqual(self.server.expire_due(self.clock.advance(3)), [nid])

	def test_failed_reload(self):
		"""Failed file reload raises and leaves old config active."""
		self.server.controller.path = '/nonexistent/dir/config.yaml'
		old = self.server.controller.get()
		# missing file means defaults, so make cli overrides invalid
		self.server.controller.cli_opts = dict(timeout='never')
		with self.assertRaises(core.ConfigError): self.server.reload()
		self.assertIs(self.server.controller.get(), old)
