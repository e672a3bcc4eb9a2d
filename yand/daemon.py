import itertools as it, operator as op, functools as ft
import os, sys, math, signal, logging

from dbus.mainloop.glib import DBusGMainLoop
import dbus, dbus.service, dbus.exceptions

import gi
gi.require_version('Gtk', '3.0')
from gi.repository import GLib

if __name__ == '__main__':
	# Try to import submodules from the same path, not the site-packages
	from os.path import join, realpath, dirname
	module_root = realpath(dirname(dirname(__file__)))
	if module_root not in sys.path: sys.path.insert(0, module_root)
	from yand.server import NotificationMethods
	from yand import core, config as conf, __version__

else:
	from .server import NotificationMethods
	from . import core, config as conf, __version__

optz = core.optz
log = logging.getLogger(__name__)


class ControlMethods:
	'Administrative calls, exported on a separate object path.'

	def __init__(self, daemon):
		self.daemon = daemon

	def Reload(self):
		log.debug('Reload call')
		config = self.daemon.reload()
		log.info('Configuration reloaded (version: %s)', config.version)

	def List(self):
		log.debug('List call')
		return dbus.Array(self.daemon.List(), signature='u')


def _dbus_class(cls_name, cls_parents, methods, exports):
	'''Build dbus.service.Object subclass with specified methods exported.
		Necessary because dbus interface names are embedded into method
			decorators, so it's either monkey-patching of a global class or customized creation.'''
	cls_attrs = dict()
	for wrapper, iface, name, *args in exports:
		cls_attrs[name] = wrapper(iface, *args)(methods[name])
	cls_attrs['__init__'] = methods['__init__']
	return type(dbus.service.Object)(cls_name, cls_parents, cls_attrs)

def notification_daemon_factory(controller, dbus_interface, *dbus_svc_args, **dbus_svc_kws):
	'Build NotificationDaemon object on a configured dbus interface.'
	method, signal = dbus.service.method, dbus.service.signal
	methods = dict(vars(NotificationMethods))
	def __init__(self, controller, *dbus_svc_args, **dbus_svc_kws):
		NotificationMethods.__init__(self, controller)
		dbus.service.Object.__init__(self, *dbus_svc_args, **dbus_svc_kws)
	methods['__init__'] = __init__
	cls = _dbus_class( 'NotificationDaemon',
		(NotificationMethods, dbus.service.Object), methods, [
			(method, dbus_interface, 'GetCapabilities', '', 'as'),
			(method, dbus_interface, 'GetServerInformation', '', 'ssss'),
			(signal, dbus_interface, 'NotificationClosed', 'uu'),
			(signal, dbus_interface, 'ActionInvoked', 'us'),
			(method, dbus_interface, 'Notify', 'susssasa{sv}i', 'u'),
			(method, dbus_interface, 'CloseNotification', 'u', '') ] )
	return cls(controller, *dbus_svc_args, **dbus_svc_kws)

def control_factory(daemon, control_interface, *dbus_svc_args, **dbus_svc_kws):
	method = dbus.service.method
	methods = dict(vars(ControlMethods))
	def __init__(self, daemon, *dbus_svc_args, **dbus_svc_kws):
		ControlMethods.__init__(self, daemon)
		dbus.service.Object.__init__(self, *dbus_svc_args, **dbus_svc_kws)
	methods['__init__'] = __init__
	cls = _dbus_class( 'DaemonControl',
		(ControlMethods, dbus.service.Object), methods, [
			(method, control_interface, 'Reload', '', ''),
			(method, control_interface, 'List', '', 'au') ] )
	return cls(daemon, *dbus_svc_args, **dbus_svc_kws)


class GLibTimer:
	'Keeps single GLib timeout armed for the earliest deadline in TimeoutScheduler.'

	_source = None

	def __init__(self, daemon):
		self.daemon, self.scheduler = daemon, daemon.scheduler
		self.scheduler.wakeup = self.arm
		self.arm(self.scheduler.next_deadline())

	def arm(self, deadline):
		if self._source:
			GLib.source_remove(self._source)
			self._source = None
		if deadline is None: return
		delay = max(0, deadline - self.scheduler.clock())
		self._source = GLib.timeout_add(int(math.ceil(delay * 1000)), self._expire)

	def _expire(self):
		self._source = None
		self.daemon.expire_due()
		if not self._source: self.arm(self.scheduler.next_deadline())
		return False


def main(argv=None):
	global log
	import argparse

	parser = argparse.ArgumentParser(description='Desktop notification daemon.')

	parser.add_argument('--conf', metavar='path',
		help='Read option values from specified YAML configuration file'
			f' (default: {conf.default_path()}).'
			' Any values specified on command line will override corresponding ones from file,'
				' both on start and on reload.')

	parser.add_argument('-t', '--timeout', type=float, metavar='seconds',
		help='Default timeout for notification popups removal,'
			' 0 - never expire (default: {}s).'.format(optz['timeout']))
	parser.add_argument('--max-lines', type=int, metavar='n',
		help='Max number of body lines to display (default: {}).'.format(optz['max_lines']))
	parser.add_argument('--anchor', choices=core.layout_anchor,
		help='Screen corner notifications gravitate to (default: {}).'.format(optz['anchor']))
	parser.add_argument('--order', choices=core.stack_order,
		help='Whether oldest or newest notification'
			' is the closest to anchor corner (default: {}).'.format(optz['order']))
	parser.add_argument('--layer', choices=core.layers,
		help='Stacking layer for notification windows (default: {}).'.format(optz['layer']))
	parser.add_argument('--output', metavar='name',
		help='Monitor (model name) to display notifications on (default: primary one).')
	parser.add_argument('--width', type=int, metavar='px',
		help='Width of notification windows (default: {}px).'.format(optz['width']))
	parser.add_argument('--spacing', type=int, metavar='px',
		help='Space between notifications (default: {}px).'.format(optz['spacing']))
	parser.add_argument('--margin', type=int, metavar='px',
		help='Margin from the screen edges (default: {}px).'.format(optz['margin']))
	parser.add_argument('--icon-size', type=int, metavar='px',
		help='Size to scale icons to (default: {}px).'.format(optz['icon_size']))
	parser.add_argument('--markup-warn-on-err', action='store_true',
		help='Issue logging warning if passed markup tags cannot be parsed.')
	parser.add_argument('--test-message', action='store_true',
		help='Issue test notification right after start.')

	parser.add_argument('--dbus-interface', default=optz['dbus_interface'],
		help='DBus interface and bus name to use (default: %(default)s)')
	parser.add_argument('--dbus-path', default=optz['dbus_path'],
		help='DBus object path to bind to (default: %(default)s)')
	parser.add_argument('--control-interface', default=optz['control_interface'],
		help='DBus interface for daemon control calls (default: %(default)s)')
	parser.add_argument('--control-path', default=optz['control_path'],
		help='DBus object path for daemon control calls (default: %(default)s)')

	parser.add_argument('--debug', action='store_true', help='Enable debug logging to stderr.')

	opts = parser.parse_args(sys.argv[1:] if argv is None else argv)

	logging.basicConfig(level=logging.DEBUG if opts.debug else logging.WARNING)
	log = logging.getLogger('daemon')

	cli_opts = dict( (k, getattr(opts, k)) for k in
		[ 'timeout', 'max_lines', 'anchor', 'order', 'layer',
			'output', 'width', 'spacing', 'margin', 'icon_size' ] )
	controller = conf.ReloadController(
		path=os.path.expanduser(opts.conf or conf.default_path()), cli_opts=cli_opts )
	try: controller.reload_file()
	except core.ConfigError as err: parser.error(str(err))

	try: from yand.display import NotificationDisplay
	except RuntimeError as err: # less verbose errors in case X isn't running
		print(f'Gtk init error, exiting: {err}', file=sys.stderr)
		return 1

	DBusGMainLoop(set_as_default=True)
	bus = dbus.SessionBus()
	try: bus_name = dbus.service.BusName(opts.dbus_interface, bus, do_not_queue=True)
	except dbus.exceptions.NameExistsException:
		log.error('Bus name %r is already taken by another daemon, exiting', opts.dbus_interface)
		return 1

	daemon = notification_daemon_factory(
		controller, opts.dbus_interface, bus, opts.dbus_path, bus_name )
	control = control_factory(
		daemon, opts.control_interface, bus, opts.control_path, bus_name )

	try:
		surface = NotificationDisplay(
			on_dismiss=daemon.dismissed, on_action=daemon.action_clicked,
			on_body_click=daemon.body_clicked, style_path=conf.style_path(controller.path),
			markup_warn=opts.markup_warn_on_err )
	except core.StartupFailure as err:
		log.error('Failed to initialize display: %s', err)
		return 1
	daemon.attach_surface(surface)
	timer = GLibTimer(daemon)

	if opts.test_message:
		daemon.Notify( 'yand', 0, '', 'Notification daemon started',
			'Desktop notification daemon started successfully on host: <u>{}</u>'
				'\nVersion: <small>{}</small>'.format(os.uname()[1], __version__), [], dict(), -1 )

	loop = GLib.MainLoop()
	for sig in signal.SIGINT, signal.SIGTERM:
		GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, sig, loop.quit)
	log.debug('Starting gobject loop')
	loop.run()
	log.debug('Exiting cleanly')


if __name__ == '__main__': sys.exit(main())
