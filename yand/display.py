import itertools as it, operator as op, functools as ft
import os, re, collections as cs, urllib.request as ulr

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('Gdk', '3.0')
from gi.repository import Gtk, Gdk, GdkPixbuf, GLib, Pango

from . import core

import logging
log = logging.getLogger(__name__)


class NotificationDisplay:
	'''Rendering surface - one popup window per notification.

		Does not compute any layout itself, only paints windows
			at positions passed to upsert() (from StackManager) and reports
			clicks back via on_dismiss(nid), on_action(nid, key), on_body_click(nid).
		Callbacks are invoked from GLib idle handlers, never while
			inside GTK event handlers of the window they're about.'''

	window = cs.namedtuple('Window', 'gobj content')
	base_css = b'''
		#notification { background: transparent; }
		#notification #frame { background-color: #d4ded8; padding: 8px; }

		#notification .critical #summary { background-color: #ffaeae; }
		#notification .normal #summary { background-color: #f0ffec; }
		#notification .low #summary { background-color: #bee3c6; }

		#notification #summary {
			color: black;
			padding-left: 5px;
			font-size: 1.2em;
			text-shadow: 1px 1px 0px gray;
		}
		#notification #body { color: black; font-size: 1em; }
		#notification button.action { padding: 2px 6px; }
	'''
	base_css_min = b'#notification * { font-size: 8; }' # simpliest fallback


	def __init__( self, on_dismiss, on_action, on_body_click,
			style_path=None, markup_warn=False, markup_strip=True ):
		self.on_dismiss, self.on_action, self.on_body_click = on_dismiss, on_action, on_body_click
		self.style_path = style_path
		self.markup_warn, self.markup_strip = markup_warn, markup_strip
		self.config = core.Config()

		self._windows = dict()
		self._style = None
		if not Gdk.Screen.get_default(): raise core.StartupFailure('No display screen detected')


	def _pango_markup_parse(self, text, _err_mark='[yand-markup] '):
		try:
			success, _, text, _ = Pango.parse_markup(text, -1, '\0')
			if not success: raise GLib.GError('pango_parse_markup failure')
		except GLib.GError as err:
			success = False # should be rendered as text
			if self.markup_warn:
				msg_start = f'{_err_mark}Pango formatting failed'
				if msg_start not in text: # detect and avoid possible feedback loops
					log.warning('%s (%s) for text, stripping markup: %r', msg_start, err, text)
			if self.markup_strip: text = core.strip_markup(text)
		return success, text


	def _load_css(self):
		css, base_css = Gtk.CssProvider(), self.base_css
		if self.style_path and os.path.isfile(self.style_path):
			try:
				css.load_from_path(self.style_path)
				return css
			except GLib.GError as err:
				log.warning('Failed to load CSS from %r, using default style: %s', self.style_path, err)
		for attempt in range(4):
			try: css.load_from_data(base_css)
			except GLib.GError as err:
				log.warning('Failed to load default CSS style (try %s): %s', attempt+1, err)
			else: break
			# Older gtk versions don't support some properties
			if attempt == 0:
				base_css = re.sub(br'\b(text-shadow:)[^;]+;', br'\1 1 1 0 gray;', base_css)
			elif attempt == 1: base_css = re.sub(br'\btext-shadow:[^;]+;', b'', base_css)
			elif attempt == 2: base_css = self.base_css_min # last resort before no-css-at-all
		return css

	def _get_monitor_geometry(self):
		display = Gdk.Display.get_default()
		monitors = list(map(display.get_monitor, range(display.get_n_monitors())))
		monitor = None
		if self.config.output:
			for m in monitors:
				if self.config.output in (m.get_model(), m.get_manufacturer()):
					monitor = m
					break
			else: log.warning('Configured output %r not found, using default one', self.config.output)
		if not monitor: monitor = display.get_primary_monitor() or (monitors and monitors[0])
		if not monitor: raise core.StartupFailure('No monitors detected')
		return monitor.get_geometry()


	def reload(self, config):
		self.config = config
		screen = Gdk.Screen.get_default()
		if self._style: Gtk.StyleContext.remove_provider_for_screen(screen, self._style)
		self._style = self._load_css()
		Gtk.StyleContext.add_provider_for_screen(
			screen, self._style, Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION )
		for win in self._windows.values(): self._set_layer(win.gobj)


	def _get_icon(self, icon):
		pixbuf, size = None, self.config.icon_size
		if isinstance(icon, core.ImageData):
			data = GLib.Bytes.new(icon.data)
			pixbuf = GdkPixbuf.Pixbuf.new_from_bytes(
				data, GdkPixbuf.Colorspace.RGB, icon.has_alpha,
				icon.bits_per_sample, icon.width, icon.height, icon.rowstride )
		elif icon:
			icon_path = os.path.expanduser(ulr.url2pathname(icon))
			if icon_path.startswith('file://'): icon_path = icon_path[7:]
			if os.path.isfile(icon_path): pixbuf = GdkPixbuf.Pixbuf.new_from_file(icon_path)
			else:
				theme = Gtk.IconTheme.get_default()
				info = theme.lookup_icon(icon, size, Gtk.IconLookupFlags.USE_BUILTIN)
				if info: pixbuf = info.load_icon()
				else:
					log.warning( 'Provided icon info seem to be neither valid icon file nor'
						' a name in a freedesktop.org-compliant icon theme, ignoring it: %r',
						core.format_trunc(icon) )
		if not pixbuf: return
		w, h = pixbuf.get_width(), pixbuf.get_height()
		if max(w, h) != size: # scale to fit into icon_size box, preserving aspect ratio
			scale = float(size) / max(w, h)
			log.debug('Scaling image by a factor of %.3f: %dx%d', scale, w, h)
			pixbuf = pixbuf.scale_simple(
				max(1, int(w * scale)), max(1, int(h * scale)), GdkPixbuf.InterpType.BILINEAR )
		return Gtk.Image.new_from_pixbuf(pixbuf)

	def _set_layer(self, win):
		layer = self.config.layer
		win.set_keep_above(layer in ('overlay', 'top'))
		win.set_keep_below(layer == 'bottom')

	def _create_content(self, nid, note, lines):
		frame = Gtk.Box(name='frame', orientation=Gtk.Orientation.VERTICAL, spacing=3)
		ctx = frame.get_style_context()
		ctx.add_class(note.urgency_label)
		app_class = re.sub(r'[^\w-]+', '_', note.app_name)
		if app_class: ctx.add_class(app_class)

		summary = Gtk.Label(name='summary', xalign=0)
		markup, text = self._pango_markup_parse(note.summary)
		if markup: summary.set_markup(note.summary)
		else: summary.set_text(text)
		frame.pack_start(summary, False, False, 0)

		h_box = Gtk.Box(spacing=6)
		frame.pack_start(h_box, True, True, 0)
		try: widget_icon = self._get_icon(note.image)
		except Exception: # Gdk may raise errors for some images/formats
			log.exception('Failed to set notification icon')
			widget_icon = None
		if widget_icon: h_box.pack_start(widget_icon, False, False, 0)

		if lines:
			body = Gtk.Label( name='body', xalign=0, yalign=0,
				wrap=True, wrap_mode=Pango.WrapMode.WORD_CHAR,
				lines=lines, ellipsize=Pango.EllipsizeMode.END )
			markup, text = self._pango_markup_parse(note.body)
			if markup: body.set_markup(note.body)
			else: body.set_text(text)
			h_box.pack_start(body, True, True, 0)

		if note.buttons:
			buttons = Gtk.Box(homogeneous=True, spacing=3)
			for key, label in note.buttons:
				button = Gtk.Button()
				if note.action_icons:
					button.set_image(Gtk.Image.new_from_icon_name(key, Gtk.IconSize.BUTTON))
					button.set_tooltip_text(label)
				else: button.set_label(label)
				button.get_style_context().add_class('action')
				button.connect( 'clicked',
					lambda w, key: GLib.idle_add(self.on_action, nid, key), key )
				buttons.pack_start(button, True, True, 0)
			frame.pack_start(buttons, False, False, 0)
		return frame

	def _on_click(self, win, ev, nid):
		cb = self.on_dismiss if ev.button == 3 else self.on_body_click
		GLib.idle_add(cb, nid)
		return True

	def _create_win(self, nid):
		win = Gtk.Window(name='notification', type=Gtk.WindowType.POPUP)
		win.add_events(Gdk.EventMask.BUTTON_PRESS_MASK)
		win.connect('button-press-event', self._on_click, nid)
		self._set_layer(win)
		# Initially drawn off-screen, until size/position is known
		win.move(-2000, -2000)
		return win


	def upsert(self, nid, entry, note):
		content = ( note.app_name, note.summary, note.body, tuple(note.actions),
			note.urgency, note.image, note.action_icons, entry.lines, self.config.icon_size )
		win = self._windows.get(nid)
		if not win: win = self.window(self._create_win(nid), None)
		if win.content != content:
			log.debug( 'Rendering notification window: %s', core.repr_trunc_rec(dict(
				id=nid, summary=note.summary, body=note.body, lines=entry.lines )) )
			child = win.gobj.get_child()
			if child: win.gobj.remove(child), child.destroy()
			win.gobj.add(self._create_content(nid, note, entry.lines))
			win = win._replace(content=content)
		self._windows[nid] = win

		width, geom = self.config.width, self._get_monitor_geometry()
		anchor, margin = core.layout_anchor[self.config.anchor], self.config.margin
		x = geom.x + geom.width - margin - width if anchor & 1 else geom.x + margin
		y = geom.y + geom.height - entry.position - entry.height\
			if anchor & 2 else geom.y + entry.position
		win.gobj.set_size_request(width, entry.height)
		win.gobj.resize(width, entry.height)
		win.gobj.move(x, y)
		win.gobj.show_all()


	class NoWindowError(Exception): pass

	def remove(self, nid):
		try: win = self._windows.pop(nid).gobj
		except KeyError: raise self.NoWindowError(nid)
		win.hide(), win.destroy()
