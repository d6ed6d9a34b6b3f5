"""Tests for albumctl package imports and exports."""

from __future__ import annotations


class TestPackageImports:
    """Tests for package imports."""

    def test_import_albumctl(self):
        import albumctl

        assert hasattr(albumctl, "__version__")

    def test_import_core_modules(self):
        from albumctl.core import auth, client, config, exceptions, logging, navigation, output, refresh, tokens

        assert client is not None
        assert config is not None
        assert auth is not None
        assert exceptions is not None
        assert navigation is not None
        assert output is not None
        assert logging is not None
        assert refresh is not None
        assert tokens is not None

    def test_import_uploads(self):
        from albumctl.uploads import adapters, preview, session, validation

        assert adapters is not None
        assert preview is not None
        assert session is not None
        assert validation is not None

    def test_import_cli(self):
        from albumctl.cli import auth, common, config_cmd, main, media

        assert main.cli is not None
        assert auth.auth is not None
        assert config_cmd.config is not None
        assert media.media is not None
        assert common.Context is not None


class TestPackageExports:
    """Tests for package-level exports."""

    def test_all_exports_resolve(self):
        import albumctl
        import albumctl.core
        import albumctl.models
        import albumctl.uploads

        for module in (albumctl, albumctl.core, albumctl.models, albumctl.uploads):
            for name in module.__all__:
                assert hasattr(module, name), f"{module.__name__}.{name}"

    def test_exception_hierarchy(self):
        from albumctl import AlbumCtlError, AuthenticationError, SessionExpiredError, UploadError
        from albumctl.core.exceptions import RefreshFailedError, TransferError

        assert issubclass(SessionExpiredError, AuthenticationError)
        assert issubclass(RefreshFailedError, AuthenticationError)
        assert issubclass(TransferError, UploadError)
        assert issubclass(UploadError, AlbumCtlError)

    def test_output_helpers(self):
        from albumctl.core import output

        public = {name for name in dir(output) if name.startswith("print_")}
        assert public == {
            "print_error",
            "print_json",
            "print_key_value",
            "print_output",
            "print_success",
            "print_table",
            "print_warning",
        }
