import itertools as it, operator as op, functools as ft
import collections as cs, html.parser, logging
from time import time


class Enum(dict):
	def __init__(self, *keys, **kws):
		if not keys: super().__init__(**kws)
		else:
			vals = kws.pop('vals', range(len(keys)))
			if kws: raise TypeError(kws)
			super().__init__(zip(keys, vals))
	def __getattr__(self, k):
		if not k.startswith('__'):
			try: return self[k]
			except KeyError: raise AttributeError(k)
		else: raise AttributeError(k)
	def by_id(self, v_chk):
		for k,v in self.items():
			if v == v_chk: return k
		else: raise KeyError(v_chk)


class YandError(Exception): pass
class InvalidArgs(YandError):
	_dbus_error_name = 'org.freedesktop.DBus.Error.InvalidArgs'
class ConfigError(YandError):
	_dbus_error_name = 'org.yand.Control.ConfigError'
class IdSpaceExhausted(YandError): pass
class StartupFailure(YandError): pass


def to_str(obj, encoding='utf-8', errors='replace'):
	if isinstance(obj, bytes): return obj.decode(encoding, errors)
	return str(obj)

def format_trunc(v, proc=to_str, len_max=None):
	try:
		v = proc(v)
		if len_max is None: len_max = 1024 # len_max_default
		if len(v) > len_max: v = v[:len_max] + '... (len: {})'.format(len(v))
	except Exception as err:
		logging.getLogger('core.strings')\
			.exception('Failed to process string %r: %s', v, err)
	return v

def repr_trunc(v, len_max=None):
	return format_trunc(v, proc=repr, len_max=len_max)

def repr_trunc_rec(v, len_max=None, len_max_val=None, level=1):
	if level == 0: return format_trunc(v)
	if len_max is None: len_max = 2048 # len_max_default
	if len_max_val is None: len_max_val = 512 # len_max_default
	rec = ft.partial( repr_trunc_rec,
		len_max=len_max, len_max_val=len_max_val, level=level-1 )
	if isinstance(v, dict): v = dict((k, rec(v)) for k,v in v.items())
	elif isinstance(v, (tuple, list)): v = list(map(rec, v))
	else: return format_trunc(v, len_max=len_max_val)
	return repr_trunc(v, len_max=len_max)


class MarkupToText(html.parser.HTMLParser):
	def handle_starttag(self, tag, attrs): pass
	def handle_endtag(self, tag): pass
	def handle_entityref(self, ref): self.d.append(f'&{ref};')
	def handle_charref(self, ref): self.d.append(f'&#{ref};')
	def handle_data(self, data): self.d.append(data)

	def __call__(self, s):
		self.d = list()
		self.reset()
		self.feed(s)
		self.close()
		return ''.join(self.d).strip()

strip_markup = MarkupToText()


####

optz = dict(
	output=None, layer='overlay', anchor='top_right', order='oldest_first',
	margin=10, spacing=10, timeout=10, width=400, max_lines=5, icon_size=64,
	persist_actionable=True,
	dbus_interface='org.freedesktop.Notifications',
	dbus_path='/org/freedesktop/Notifications',
	control_interface='org.yand.Control', control_path='/org/yand/Control' )

id_max = 2**32 - 1 # u32 on the wire, 0 is reserved

urgency_levels = Enum('low', 'normal', 'critical')
close_reasons = Enum('expired', 'dismissed', 'closed', 'undefined', vals=range(1, 5))
note_states = Enum('pending', 'visible', 'closing')

# Bit 0 - anchored to the right edge, bit 1 - to the bottom one
layout_anchor = Enum('top_left', 'top_right', 'bottom_left', 'bottom_right')
stack_order = Enum('oldest_first', 'newest_first')
layers = Enum('overlay', 'top', 'bottom')

default_action = 'default'

####


OverrideEntry = cs.namedtuple('OverrideEntry', 'app_name timeout max_lines')

Config = cs.namedtuple( 'Config',
	'output layer anchor order margin spacing timeout width'
		' max_lines icon_size persist_actionable overrides version',
	defaults=op.itemgetter( 'output', 'layer', 'anchor', 'order',
		'margin', 'spacing', 'timeout', 'width', 'max_lines', 'icon_size',
		'persist_actionable' )(optz) + (dict(), 0) )


def timeout_from_wire(expire_timeout):
	'''Convert Notify() expire_timeout (ms) to seconds.
		-1 (or any negative value) means "server default" and maps to None.'''
	if expire_timeout is None or expire_timeout < 0: return None
	return expire_timeout / 1000.0

def action_pairs(actions):
	'Flat [key, label, key, label, ...] wire list to ordered (key, label) pairs.'
	actions = list(actions or list())
	if len(actions) % 2:
		raise InvalidArgs( 'Actions list must have'
			' even number of key/label items, got {}'.format(len(actions)) )
	return list(zip(map(str, actions[::2]), map(str, actions[1::2])))


ImageData = cs.namedtuple( 'ImageData',
	'width height rowstride has_alpha bits_per_sample channels data' )

def parse_hints(hints):
	'''Pick known hints from Notify() hints dict, ignoring unknown or malformed ones.
		Returns dict with urgency, image_data, image_path, resident, action_icons keys.'''
	log = logging.getLogger('core.hints')
	res = dict( urgency=urgency_levels.normal,
		image_data=None, image_path=None, resident=False, action_icons=False )
	for k, v in (hints or dict()).items():
		k = str(k)
		try:
			if k == 'urgency':
				v = int(v)
				if v not in urgency_levels.values(): raise ValueError(v)
				res['urgency'] = v
			elif k in ('image-data', 'image_data', 'icon_data'):
				if res['image_data'] and k == 'icon_data': continue # lowest priority
				res['image_data'] = ImageData(
					*map(int, v[:3]), bool(v[3]), *map(int, v[4:6]), bytes(bytearray(v[6])) )
			elif k in ('image-path', 'image_path'): res['image_path'] = str(v)
			elif k in ('resident', 'action-icons'): res[k.replace('-', '_')] = bool(v)
		except (TypeError, ValueError, IndexError) as err:
			log.debug('Ignoring malformed %r hint (%s): %s', k, err, repr_trunc(v, 128))
	return res


class Notification:
	'''Single notification entity, owned and mutated only by NotificationStore.
		Everything else gets it as a read-only reference or by id.'''

	id = seq = created = None
	state = note_states.pending
	requested_timeout = effective_timeout = max_lines = None

	content_args = 'app_name', 'summary', 'body', 'actions', 'icon', 'hints'

	def __init__( self, app_name='', summary='', body='',
			actions=None, icon='', hints=None ):
		self.created = time()
		self.update(app_name, summary, body, actions, icon, hints)

	def update(self, app_name, summary, body, actions, icon, hints):
		self.app_name, self.summary, self.body = app_name, summary, body
		self.actions = list(actions or list())
		self.icon, self.hints = icon, dict(hints or dict())
		for k, v in parse_hints(self.hints).items(): setattr(self, k, v)

	@property
	def buttons(self):
		'Actions to render as buttons, i.e. everything except the default one.'
		return list((k, label) for k, label in self.actions if k != default_action)

	@property
	def has_default_action(self):
		return any(k == default_action for k, label in self.actions)

	@property
	def image(self):
		'''Image to use in priority order defined by notifications protocol 1.2:
			image-data hint, image-path hint, app_icon parameter.'''
		return self.image_data or self.image_path or self.icon or None

	@property
	def urgency_label(self): return urgency_levels.by_id(self.urgency)

	def __repr__(self):
		return '<Notification[{}] app={!r} summary={!r} body={!r}>'\
			.format(self.id, self.app_name, self.summary, format_trunc(self.body, len_max=64))
