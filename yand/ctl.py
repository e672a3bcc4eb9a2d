import os, sys

if __name__ == '__main__':
	# For running from a checkout
	from os.path import join, realpath, dirname
	module_root = realpath(dirname(dirname(__file__)))
	if module_root not in sys.path: sys.path.insert(0, module_root)

from yand.core import optz, urgency_levels


def main(args=None):
	import argparse
	parser = argparse.ArgumentParser(
		description='Control running yand notification daemon.')
	parser.add_argument('--dbus-interface', default=optz['dbus_interface'],
		help='DBus interface and bus name of the daemon (default: %(default)s)')
	parser.add_argument('--dbus-path', default=optz['dbus_path'],
		help='DBus object path of notification interface (default: %(default)s)')
	parser.add_argument('--control-interface', default=optz['control_interface'],
		help='DBus interface for daemon control calls (default: %(default)s)')
	parser.add_argument('--control-path', default=optz['control_path'],
		help='DBus object path for daemon control calls (default: %(default)s)')
	parser.add_argument('--debug', action='store_true', help='Verbose operation mode.')

	cmds = parser.add_subparsers(title='Commands', dest='call')

	cmd = cmds.add_parser('reload', help='Re-read configuration file.')

	cmd = cmds.add_parser('list', help='Print ids of displayed notifications, in stack order.')

	cmd = cmds.add_parser('close', help='Close notification(s) with specified id(s).')
	cmd.add_argument('nid', nargs='+', type=int, help='Notification id.')

	cmd = cmds.add_parser('send', help='Send notification message.')
	cmd.add_argument('summary', help='Message summary header.')
	cmd.add_argument('body', nargs='?', default='', help='Message body (can be empty).')
	cmd.add_argument('-a', '--app-name', metavar='name', default='yandctl',
		help='App name to send (default: %(default)s).')
	cmd.add_argument('-i', '--icon', metavar='icon', default='', help='Icon name or path.')
	cmd.add_argument('-r', '--replaces-id', type=int, metavar='id', default=0,
		help='Id of notification to replace.')
	cmd.add_argument('-t', '--expire-time', type=float, metavar='display_seconds',
		help='Timeout (in seconds) at which to expire the notification, 0 - never.')
	cmd.add_argument('-u', '--urgency', metavar='low/normal/critical',
		help='Urgency hint to use for the message - can be either integer'
			' in 0-2 range (level id) or symbolic level name - low/normal/critical.')
	cmd.add_argument('-x', '--action', action='append', metavar='key:label',
		help='Action to attach. Can be specified multiple times.'
			' Use "default" key for action invoked by clicking on notification itself.')

	opts = parser.parse_args(sys.argv[1:] if args is None else args)
	if not opts.call: parser.error('Command must be specified')

	import logging
	logging.basicConfig(level=logging.DEBUG if opts.debug else logging.WARNING)
	log = logging.getLogger()

	import dbus, dbus.exceptions
	bus = dbus.SessionBus()

	def iface(path, name):
		return dbus.Interface(bus.get_object(opts.dbus_interface, path), name)

	try:
		if opts.call == 'reload':
			iface(opts.control_path, opts.control_interface).Reload()
		elif opts.call == 'list':
			for nid in iface(opts.control_path, opts.control_interface).List(): print(nid)
		elif opts.call == 'close':
			notes = iface(opts.dbus_path, opts.dbus_interface)
			for nid in opts.nid: notes.CloseNotification(dbus.UInt32(nid))
		elif opts.call == 'send':
			hints = dict()
			if opts.urgency:
				try: urgency = int(opts.urgency)
				except ValueError:
					try: urgency = getattr(urgency_levels, opts.urgency)
					except AttributeError:
						parser.error(f'Unrecognized urgency level name: {opts.urgency}')
				else:
					if not 0 <= urgency <= 2:
						parser.error(f'Urgency level id must be in 0-2 range: {opts.urgency}')
				hints['urgency'] = dbus.Byte(urgency)
			actions = list()
			for spec in opts.action or list():
				key, sep, label = spec.partition(':')
				actions.extend([key, label or key])
			timeout = -1 if opts.expire_time is None else int(opts.expire_time * 1000)
			log.debug('Dispatching notification')
			nid = iface(opts.dbus_path, opts.dbus_interface).Notify(
				opts.app_name, dbus.UInt32(opts.replaces_id), opts.icon, opts.summary, opts.body,
				dbus.Array(actions, signature='s'), dbus.Dictionary(hints, signature='sv'), timeout )
			print(nid)
	except dbus.exceptions.DBusException as err:
		print(f'ERROR: {err.get_dbus_name()}: {err.get_dbus_message()}', file=sys.stderr)
		return 1


if __name__ == '__main__': sys.exit(main())
