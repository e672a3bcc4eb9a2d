import itertools as it, operator as op, functools as ft
import collections as cs, textwrap, logging

from . import core

log = logging.getLogger(__name__)


StackEntry = cs.namedtuple('StackEntry', 'nid index position height lines')

# Layout commands for the rendering surface
Upsert = cs.namedtuple('Upsert', 'nid entry note')
Remove = cs.namedtuple('Remove', 'nid')

# Height budget of notification parts, in px
char_px, line_px, summary_px, actions_px, padding_px = 8, 18, 24, 32, 8


def body_lines(body, width):
	'Number of lines that markup-stripped body wraps into at specified px width.'
	text = core.strip_markup(body) if body else ''
	if not text: return 0
	cols = max(1, width // char_px)
	return sum(max(1, len(textwrap.wrap(line, cols))) for line in text.splitlines())

def note_geometry(note, config):
	'Returns (height, visible_lines) for notification with specified config.'
	text_width = config.width - 2 * padding_px
	if note.image: text_width -= config.icon_size + padding_px
	lines = min(body_lines(note.body, text_width), note.max_lines)
	height = 2 * padding_px + summary_px + lines * line_px
	if note.image: height = max(height, 2 * padding_px + summary_px + config.icon_size)
	if note.buttons: height += actions_px
	return height, lines

def compute(visible, config):
	'''Deterministic ordered layout of visible notifications.
		Ordered by creation time (ascending for oldest_first, descending otherwise),
			with id as a tiebreak, positions are offsets from the anchor screen edge.'''
	notes = sorted( visible, key=op.attrgetter('created', 'id'),
		reverse=config.order == 'newest_first' )
	entries, pos = list(), config.margin
	for n, note in enumerate(notes):
		height, lines = note_geometry(note, config)
		entries.append(StackEntry(note.id, n, pos, height, lines))
		pos += height + config.spacing
	return entries


class StackManager:
	'''Keeps last computed layout to produce minimal
		list of Upsert/Remove commands for the rendering surface.'''

	def __init__(self):
		self.entries = dict()

	@property
	def stack(self):
		return sorted(self.entries.values(), key=op.attrgetter('index'))

	def relayout(self, visible, config, changed=()):
		'''Recompute layout and return commands for what's different since last call.
			changed - ids with updated content, to upsert even if geometry is the same.'''
		entries = compute(visible, config)
		notes = dict((note.id, note) for note in visible)
		entries_new = dict((e.nid, e) for e in entries)
		cmds = list( Remove(nid) for nid in
			sorted(set(self.entries).difference(entries_new)) )
		for e in entries:
			if e.nid in changed or self.entries.get(e.nid) != e:
				cmds.append(Upsert(e.nid, e, notes[e.nid]))
		self.entries = entries_new
		log.debug('Layout update: %s entries, %s command(s)', len(entries), len(cmds))
		return cmds
