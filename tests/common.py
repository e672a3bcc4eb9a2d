from yand import core
from yand.config import ReloadController
from yand.server import NotificationMethods


class FakeClock:
	def __init__(self, ts=1000.0): self.ts = ts
	def __call__(self): return self.ts
	def advance(self, seconds):
		self.ts += seconds
		return self.ts


class RecordingSurface:
	'Rendering surface that only records layout commands it gets.'

	def __init__(self):
		self.cmds, self.configs = list(), list()

	def upsert(self, nid, entry, note): self.cmds.append(('upsert', nid, entry))
	def remove(self, nid): self.cmds.append(('remove', nid))
	def reload(self, config): self.configs.append(config)

	def upserts(self): return list(c for c in self.cmds if c[0] == 'upsert')


class RecordingMethods(NotificationMethods):
	'Collects emitted signals, in order, instead of sending them anywhere.'

	def __init__(self, *args, **kws):
		self.signals = list()
		super().__init__(*args, **kws)

	def NotificationClosed(self, nid, reason):
		self.signals.append(('closed', nid, reason))

	def ActionInvoked(self, nid, action_key):
		self.signals.append(('action', nid, action_key))


def make_server(config=None, surface=True, **kws):
	clock = FakeClock()
	controller = ReloadController(config if config is not None else core.Config())
	surface = RecordingSurface() if surface else None
	server = RecordingMethods(controller, surface=surface, clock=clock, **kws)
	if surface: surface.cmds.clear()
	return server, surface, clock

def notify(server, summary='summary', body='body',
		app_name='test', nid=0, actions=(), hints=None, timeout=-1):
	return server.Notify( app_name, nid, '',
		summary, body, list(actions), hints or dict(), timeout )
