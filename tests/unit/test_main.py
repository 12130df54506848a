"""Unit tests for main.py module."""

from collections.abc import Callable

import pytest
from pytest_mock import MockerFixture, MockType

import main
from hsm_connector.core.config import Settings

RunMain = Callable[[Settings], MockType]


@pytest.fixture
def mock_uvicorn(mocker: MockerFixture) -> MockType:
    return mocker.patch("main.uvicorn.run")


@pytest.fixture
def run_main(
    mocker: MockerFixture, mock_uvicorn: MockType
) -> Callable[[Settings], MockType]:
    """Run main() against the given settings with app creation mocked out."""
    mocker.patch("main.setup_logging")
    mock_create_app = mocker.patch("main.create_app")

    def _run(settings: Settings) -> MockType:
        mocker.patch("main.get_settings", return_value=settings)
        main.main()
        return mock_create_app

    return _run


@pytest.mark.unit
class TestMainFunction:
    """Test class for main() function."""

    def test_tcp_listener(self, run_main: RunMain, mock_uvicorn: MockType) -> None:
        """Verify a host:port listen address is served over TCP."""
        settings = Settings(_env_file=None, listen="127.0.0.1:12345")

        mock_create_app = run_main(settings)

        mock_uvicorn.assert_called_once()
        kwargs = mock_uvicorn.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 12345
        assert "uds" not in kwargs
        assert mock_uvicorn.call_args.args[0] is mock_create_app.return_value

    def test_ipv6_listener_is_unbracketed(
        self, run_main: RunMain, mock_uvicorn: MockType
    ) -> None:
        settings = Settings(_env_file=None, listen="[::1]:12345")

        run_main(settings)

        assert mock_uvicorn.call_args.kwargs["host"] == "::1"

    def test_local_socket_listener(
        self, run_main: RunMain, mock_uvicorn: MockType
    ) -> None:
        """Verify a unix: listen address is served on a local socket."""
        settings = Settings(_env_file=None, listen="unix:/run/connector.sock")

        run_main(settings)

        kwargs = mock_uvicorn.call_args.kwargs
        assert kwargs["uds"] == "/run/connector.sock"
        assert "port" not in kwargs

    def test_app_receives_listener(self, run_main: RunMain) -> None:
        settings = Settings(_env_file=None, listen="localhost:8080")

        mock_create_app = run_main(settings)

        mock_create_app.assert_called_once_with(
            settings, listener=settings.listener_address()
        )

    def test_uvicorn_logs_through_loguru(
        self, run_main: RunMain, mock_uvicorn: MockType
    ) -> None:
        """Verify uvicorn's loggers are routed to the intercept handler."""
        run_main(Settings(_env_file=None))

        log_config = mock_uvicorn.call_args.kwargs["log_config"]
        assert log_config["handlers"]["default"]["class"] == (
            "hsm_connector.core.logging.InterceptHandler"
        )
        assert set(log_config["loggers"]) == {
            "uvicorn",
            "uvicorn.error",
            "uvicorn.access",
        }
