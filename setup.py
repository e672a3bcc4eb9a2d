#!/usr/bin/env python

from setuptools import setup, find_packages
import os

pkg_root = os.path.dirname(__file__)

# Error-handling here is to allow package to be built w/o README included
try: readme = open(os.path.join(pkg_root, 'README.md')).read()
except OSError: readme = ''

setup(

	name = 'yand',
	version = '0.1.0',
	license = 'WTFPL',
	keywords = 'desktop notification popups libnotify dbus'
		' gtk+ gtk3 gobject-introspection notification-daemon',

	description = 'Yet another notification daemon -'
		' implementation of Desktop Notifications Specification 1.2',
	long_description = readme,
	long_description_content_type = 'text/markdown',

	classifiers = [
		'Development Status :: 4 - Beta',
		'Environment :: X11 Applications :: GTK',
		'Intended Audience :: End Users/Desktop',
		'License :: OSI Approved',
		'Operating System :: POSIX',
		'Programming Language :: Python',
		'Programming Language :: Python :: 3',
		'Programming Language :: Python :: 3 :: Only',
		'Topic :: Desktop Environment' ],

	python_requires = '>=3.7',
	install_requires = ['dbus-python', 'PyGObject', 'PyYAML'],
	extras_require = dict(test=['pytest']),

	packages = find_packages(exclude=['tests', 'tests.*']),

	entry_points = dict(console_scripts=[
		'yand = yand.daemon:main',
		'yandctl = yand.ctl:main' ]) )
