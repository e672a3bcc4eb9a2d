import logging

log = logging.getLogger(__name__)


class OverrideResolver:
	'''Resolves effective timeout and max lines for a notification.

		Timeout, most specific wins: caller-requested value (0 included),
			per-app override from config, global default.
		Max lines: per-app override or global default, never caller-specified.

		get_config must return currently active config snapshot,
			so that reload is seen by the next resolve() call without any extra wiring.'''

	def __init__(self, get_config):
		self.get_config = get_config

	def lookup(self, app_name, config=None):
		if config is None: config = self.get_config()
		return config.overrides.get(app_name)

	def resolve(self, app_name, requested_timeout=None, buttons=0):
		'''Returns (effective_timeout, effective_max_lines) tuple.
			buttons - number of non-default actions, to keep notifications
				that ask for user input on-screen (if config.persist_actionable is set).'''
		config = self.get_config()
		entry = self.lookup(app_name, config)
		timeout = max_lines = None
		if entry:
			timeout, max_lines = entry.timeout, entry.max_lines
		if max_lines is None: max_lines = config.max_lines

		if requested_timeout is not None: timeout = requested_timeout
		else:
			if timeout is None: timeout = config.timeout
			if timeout and config.persist_actionable and buttons >= 2:
				log.debug( 'Disabling timeout for %r notification'
					' with %s actions (%.1fs otherwise)', app_name, buttons, timeout )
				timeout = 0
		return timeout, max_lines
