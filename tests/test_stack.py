"""Tests for yand.stack layout computation and diffing."""

import unittest

from yand import core, stack


def mknote(nid, created, body='body', max_lines=5, **kws):
	note = core.Notification('test', 'summary', body, **kws)
	note.id, note.created, note.max_lines = nid, created, max_lines
	note.state = core.note_states.visible
	return note


class TestGeometry(unittest.TestCase):

	def test_body_lines(self):
		self.assertEqual(stack.body_lines('', 100), 0)
		self.assertEqual(stack.body_lines('one\ntwo', 400), 2)
		self.assertEqual(stack.body_lines('<b>x</b>' * 20, 80), 2) # 10 chars per line

	def test_max_lines_cap(self):
		"""Visible lines never exceed effective max_lines."""
		config = core.Config()
		note = mknote(1, 0, body='\n'.join(['line'] * 20), max_lines=3)
		height, lines = stack.note_geometry(note, config)
		self.assertEqual(lines, 3)
		self.assertEqual(height, 2 * stack.padding_px + stack.summary_px + 3 * stack.line_px)

	def test_buttons_add_height(self):
		config = core.Config()
		plain = stack.note_geometry(mknote(1, 0), config)[0]
		with_buttons = stack.note_geometry(mknote(2, 0, actions=[('a', 'A')]), config)[0]
		default_only = stack.note_geometry(mknote(3, 0, actions=[('default', 'Open')]), config)[0]
		self.assertEqual(with_buttons, plain + stack.actions_px)
		self.assertEqual(default_only, plain)


class TestCompute(unittest.TestCase):

	def test_oldest_first(self):
		notes = [mknote(3, 30), mknote(1, 10), mknote(2, 20)]
		entries = stack.compute(notes, core.Config())
		self.assertEqual([e.nid for e in entries], [1, 2, 3])
		self.assertEqual([e.index for e in entries], [0, 1, 2])

	def test_newest_first(self):
		notes = [mknote(3, 30), mknote(1, 10), mknote(2, 20)]
		entries = stack.compute(notes, core.Config(order='newest_first'))
		self.assertEqual([e.nid for e in entries], [3, 2, 1])

	def test_id_tiebreak(self):
		"""Same creation time is ordered by id, making layout deterministic."""
		notes = [mknote(5, 10), mknote(2, 10), mknote(9, 10)]
		self.assertEqual([e.nid for e in stack.compute(notes, core.Config())], [2, 5, 9])
		self.assertEqual( [e.nid for e in stack.compute(
			list(reversed(notes)), core.Config() )], [2, 5, 9] )

	def test_positions(self):
		"""Entries start at margin and are separated by spacing."""
		config = core.Config(margin=7, spacing=3)
		entries = stack.compute([mknote(1, 1), mknote(2, 2), mknote(3, 3)], config)
		self.assertEqual(entries[0].position, 7)
		for prev, e in zip(entries, entries[1:]):
			self.assertEqual(e.position, prev.position + prev.height + 3)

	def test_empty(self):
		self.assertEqual(stack.compute([], core.Config()), [])


class TestStackManager(unittest.TestCase):

	def setUp(self):
		self.config = core.Config()
		self.mgr = stack.StackManager()
		self.notes = [mknote(1, 1), mknote(2, 2), mknote(3, 3)]

	def test_initial_upserts(self):
		cmds = self.mgr.relayout(self.notes, self.config)
		self.assertEqual([type(c) for c in cmds], [stack.Upsert] * 3)
		self.assertEqual([c.nid for c in cmds], [1, 2, 3])
		self.assertEqual([e.nid for e in self.mgr.stack], [1, 2, 3])

	def test_no_changes(self):
		self.mgr.relayout(self.notes, self.config)
		self.assertEqual(self.mgr.relayout(self.notes, self.config), [])

	def test_changed_forces_upsert(self):
		"""Content update produces upsert even if geometry is the same."""
		self.mgr.relayout(self.notes, self.config)
		cmds = self.mgr.relayout(self.notes, self.config, changed=[2])
		self.assertEqual(cmds, [stack.Upsert(2, self.mgr.entries[2], self.notes[1])])

	def test_remove_shifts_rest(self):
		"""Removal comes first, then only entries that moved get upserted."""
		self.mgr.relayout(self.notes, self.config)
		cmds = self.mgr.relayout([self.notes[0], self.notes[2]], self.config)
		self.assertEqual(cmds[0], stack.Remove(2))
		self.assertEqual([c.nid for c in cmds[1:]], [3])
		self.assertEqual(cmds[1].entry.index, 1)
		self.assertEqual(cmds[1].entry.position, self.mgr.entries[1].position
			+ self.mgr.entries[1].height + self.config.spacing)

	def test_config_change_repositions(self):
		self.mgr.relayout(self.notes, self.config)
		cmds = self.mgr.relayout(self.notes, self.config._replace(margin=50))
		self.assertEqual([c.nid for c in cmds], [1, 2, 3])
		self.assertEqual(cmds[0].entry.position, 50)
