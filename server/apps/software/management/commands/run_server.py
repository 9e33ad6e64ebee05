"""Serve the software hub over HTTP with cheroot."""

import logging
import os
import shlex
import sys
from typing import Any, Final, final, override

from cheroot.wsgi import Server as WSGIServer
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.core.wsgi import get_wsgi_application

from server.apps.software.conf import get_software_settings
from server.settings.components import BASE_DIR

logger = logging.getLogger(__name__)

# Set in the child process started by the reloader
_RELOAD_ENV_VAR: Final = 'SOFTWARE_HUB_RELOAD_SUBPROCESS'
_SERVER_NAME: Final = 'SoftwareHub'
_DEFAULT_THREADS: Final = 10


@final
class Command(BaseCommand):
    """Serve the API and the frontend with the cheroot WSGI server."""

    help = 'Run the software hub HTTP server'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--host',
            help='Interface to listen on (default: HOST setting)',
        )
        parser.add_argument(
            '--port',
            type=int,
            help='Port to listen on (default: PORT setting)',
        )
        parser.add_argument(
            '--threads',
            type=int,
            default=_DEFAULT_THREADS,
            help=f'Worker threads (default: {_DEFAULT_THREADS})',
        )
        parser.add_argument(
            '--reload',
            action='store_true',
            help='Restart when Python sources change (development only)',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Start the server, or the reloader watching it.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        if options['reload'] and os.environ.get(_RELOAD_ENV_VAR) != 'true':
            self._watch_and_reload(options)
            return

        host = options['host'] or settings.SERVER_HOST
        port = options['port'] or settings.SERVER_PORT
        self._serve(host, port, options['threads'])

    def _serve(self, host: str, port: int, threads: int) -> None:
        server = WSGIServer(
            bind_addr=(host, port),
            wsgi_app=get_wsgi_application(),
            numthreads=threads,
            server_name=_SERVER_NAME,
        )

        logger.info('Listening on %s:%d with %d threads', host, port, threads)
        logger.info(
            'Frontend build directory: %s',
            get_software_settings().frontend_build_dir,
        )
        self.stdout.write(
            self.style.SUCCESS(f'Software hub running at http://{host}:{port}'),
        )

        try:
            server.start()
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING('\nStopping...'))
        finally:
            server.stop()
            self.stdout.write(self.style.SUCCESS('Server stopped'))

    def _watch_and_reload(self, options: dict[str, Any]) -> None:
        """Run the server in a child process restarted on source changes.

        Args:
            options: Command options, passed on to the child.

        Raises:
            CommandError: If watchfiles is not installed.
        """
        try:
            import watchfiles  # noqa: PLC0415
        except ImportError as error:
            raise CommandError(
                "--reload needs watchfiles: pip install 'software-hub[dev]'",
            ) from error

        self.stdout.write(self.style.SUCCESS('Watching for source changes'))
        os.environ[_RELOAD_ENV_VAR] = 'true'
        watchfiles.run_process(
            BASE_DIR / 'server',
            target=shlex.join(self._child_argv(options)),
            target_type='command',
            watch_filter=watchfiles.PythonFilter(),
            callback=self._report_changes,
        )

    def _child_argv(self, options: dict[str, Any]) -> list[str]:
        argv = [sys.executable, '-m', 'django', 'run_server']
        for option in ('host', 'port'):
            if options[option]:
                argv.extend((f'--{option}', str(options[option])))
        argv.extend(('--threads', str(options['threads'])))
        return argv

    def _report_changes(self, changes: set[tuple[Any, str]]) -> None:
        for change, path in sorted(changes, key=lambda item: item[1]):
            self.stdout.write(self.style.WARNING(f'{change.name}: {path}'))
        self.stdout.write(self.style.SUCCESS('Restarting server'))
