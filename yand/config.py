import itertools as it, operator as op, functools as ft
from collections.abc import Mapping
import os, logging

import yaml

from . import core

log = logging.getLogger(__name__)


def default_path():
	base = os.environ.get('XDG_CONFIG_HOME') or os.path.expanduser('~/.config')
	return os.path.join(base, 'yand', 'config.yaml')

def style_path(config_path):
	return os.path.join(os.path.dirname(config_path or default_path()), 'style.css')


def _number(v, int_only=False, min_val=0):
	if isinstance(v, bool) or not isinstance(v, int if int_only else (int, float)):
		raise ValueError('expected {}, got {!r}'.format('integer' if int_only else 'number', v))
	if v < min_val: raise ValueError('must be >= {}, got {!r}'.format(min_val, v))
	return v

def _choice(enum):
	def _check(v):
		if v not in enum: raise ValueError('must be one of {}, got {!r}'.format(', '.join(enum), v))
		return v
	return _check

def _bool(v):
	if not isinstance(v, bool): raise ValueError('expected boolean, got {!r}'.format(v))
	return v

def _opt_str(v):
	if v is not None and not isinstance(v, str): raise ValueError('expected string, got {!r}'.format(v))
	return v

option_checks = dict(
	output=_opt_str,
	layer=_choice(core.layers),
	anchor=_choice(core.layout_anchor),
	order=_choice(core.stack_order),
	margin=ft.partial(_number, int_only=True),
	spacing=ft.partial(_number, int_only=True),
	timeout=_number,
	width=ft.partial(_number, int_only=True, min_val=1),
	max_lines=ft.partial(_number, int_only=True),
	icon_size=ft.partial(_number, int_only=True),
	persist_actionable=_bool )

override_checks = dict(
	timeout=_number, max_lines=ft.partial(_number, int_only=True) )


def parse_overrides(data):
	if data is None: return dict()
	if not isinstance(data, Mapping):
		raise core.ConfigError('"overrides" must be a mapping of app names, not {!r}'.format(data))
	overrides = dict()
	for app_name, opts in data.items():
		if not isinstance(opts, Mapping):
			raise core.ConfigError(f'Override for {app_name!r} must be a mapping, not {opts!r}')
		unknown = set(opts).difference(override_checks)
		if unknown:
			raise core.ConfigError( 'Unrecognized key(s) in'
				' override for {!r}: {}'.format(app_name, ', '.join(map(str, sorted(unknown)))) )
		vals = dict()
		for k, check in override_checks.items():
			v = opts.get(k)
			try: vals[k] = v if v is None else check(v)
			except ValueError as err:
				raise core.ConfigError(f'Invalid {k!r} override for {app_name!r}: {err}') from None
		overrides[str(app_name)] = core.OverrideEntry(str(app_name), **vals)
	return overrides

def build(data, **cli_opts):
	'''Validate mapping of options into Config snapshot.
		Non-None values in cli_opts take priority over ones from data.'''
	if data is None: data = dict()
	if not isinstance(data, Mapping):
		raise core.ConfigError('Configuration must be a mapping, not {!r}'.format(data))
	data = dict((str(k).replace('-', '_'), v) for k, v in data.items())
	overrides = parse_overrides(data.pop('overrides', None))
	unknown = set(data).difference(option_checks)
	if unknown:
		raise core.ConfigError('Unrecognized option(s): {}'.format(', '.join(sorted(unknown))))
	data.update((k, v) for k, v in cli_opts.items() if v is not None)
	opts = dict()
	for k, v in data.items():
		if k not in option_checks: raise core.ConfigError(f'Unrecognized option: {k}')
		if v is None and k != 'output': continue # keep default
		try: opts[k] = option_checks[k](v)
		except ValueError as err: raise core.ConfigError(f'Invalid {k!r} value: {err}') from None
	return core.Config(overrides=overrides, **opts)

def load(path, **cli_opts):
	'Load Config from YAML file. Missing file is not an error, defaults are used then.'
	try:
		with open(path) as src: data = yaml.safe_load(src)
	except FileNotFoundError:
		log.debug('No configuration file at %r, using defaults', path)
		data = None
	except (OSError, yaml.YAMLError) as err:
		raise core.ConfigError(f'Failed to read configuration file {path!r}: {err}') from None
	try: return build(data, **cli_opts)
	except core.ConfigError as err:
		raise core.ConfigError(f'{path}: {err}') from None


class ReloadController:
	'''Holds active Config snapshot.
		Swapping it affects only future timeout resolutions and layout passes,
			already-displayed notifications keep what they've resolved to.'''

	def __init__(self, config=None, path=None, cli_opts=None):
		self.config = config if config is not None else core.Config()
		self.path, self.cli_opts = path, dict(cli_opts or dict())

	def get(self): return self.config

	def reload(self, config):
		config = config._replace(version=self.config.version + 1)
		self.config = config
		log.debug('Activated configuration (version: %s)', config.version)
		return config

	def reload_file(self, path=None):
		'Load config from file and activate it, or raise ConfigError, keeping old one.'
		path = path or self.path or default_path()
		try: config = load(path, **self.cli_opts)
		except core.ConfigError as err:
			log.warning('Configuration reload failed, keeping old one: %s', err)
			raise
		return self.reload(config)
