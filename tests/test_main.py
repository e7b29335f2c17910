"""Tests for main.py CLI functionality."""

import pytest
from unittest.mock import patch

from images_publisher.core.factories import PublishPipelineFactory
from images_publisher.core.models import (
    Anchor,
    CropOptions,
    FitOptions,
    OutputFormat,
    PadOptions,
    SideOption,
    SideOptions,
    StretchOptions,
)
from images_publisher.main import (
    _build_config,
    _create_pipeline,
    build_parser,
    build_request,
    build_resize_options,
    main,
)
from images_publisher.testing.fakes import FakeLogger, create_test_image, setup_test_repository


def _pipeline_for(client):
    def create(config):
        return PublishPipelineFactory.create_pipeline(
            config=config, client_factory=client.factory, logger=FakeLogger()
        )

    return create


def _run(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(create_test_image(40, 20, image_format="JPEG"))
    return path


class TestMainCLI:
    """Tests for the main CLI functionality."""

    def test_main_with_no_args_shows_help(self):
        """Test that running main without arguments shows help."""
        with patch("sys.argv", ["images-publisher"]):
            with patch("argparse.ArgumentParser.print_help") as mock_help:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_help.assert_called_once()
                    mock_exit.assert_called_once_with(1)

    def test_main_version_command(self):
        """Test version command output."""
        with patch("sys.argv", ["images-publisher", "version"]):
            with patch("builtins.print") as mock_print:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_print.assert_any_call("Images Publisher CLI")
                    mock_print.assert_any_call("Version 0.1.0")
                    mock_print.assert_any_call(
                        "Resize images and publish them to GitHub as a single commit"
                    )
                    mock_exit.assert_called_once_with(0)

    def test_publish_success(self, image_file, capsys):
        """Test publish commits the resized file and exits 0."""
        client = setup_test_repository()

        with patch("images_publisher.main._create_pipeline", _pipeline_for(client)):
            code = _run(
                [
                    "publish",
                    str(image_file),
                    "--repo",
                    "octo/site",
                    "--folder",
                    "images",
                    "--token",
                    "ghp_cli",
                    "--width",
                    "20",
                    "--delete",
                    "images/old.png",
                ]
            )

        assert code == 0
        files = client.get_repository("octo", "site").files_at("main")
        assert "images/photo.webp" in files
        assert "images/old.png" not in files
        assert client.tokens == ["ghp_cli"]
        out = capsys.readouterr().out
        assert "Processing photo.jpg..." in out
        assert "SUCCESS: Committed" in out

    def test_publish_failure_exits_one(self, image_file, capsys):
        client = setup_test_repository()

        with patch("images_publisher.main._create_pipeline", _pipeline_for(client)):
            code = _run(
                ["publish", str(image_file), "--repo", "octo/site", "--branch", "nope", "--token", "t"]
            )

        assert code == 1
        assert "FAILED: Not Found (stage HeadResolved)." in capsys.readouterr().out

    def test_publish_missing_file(self, tmp_path, capsys):
        code = _run(
            ["publish", str(tmp_path / "missing.png"), "--repo", "octo/site", "--token", "t"]
        )

        assert code == 2
        assert "Invalid arguments" in capsys.readouterr().err

    def test_publish_invalid_quality(self, image_file):
        code = _run(
            ["publish", str(image_file), "--repo", "octo/site", "--token", "t", "--quality", "101"]
        )
        assert code == 2

    def test_publish_without_token(self, image_file, monkeypatch, capsys):
        """Test a missing token fails validation without network calls."""
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        client = setup_test_repository()

        with patch("images_publisher.main._create_pipeline", _pipeline_for(client)):
            code = _run(["publish", str(image_file), "--repo", "octo/site"])

        assert code == 1
        assert client.calls == []
        assert "token is required" in capsys.readouterr().out

    def test_unknown_mode_rejected(self, image_file):
        code = _run(["publish", str(image_file), "--repo", "octo/site", "--mode", "zoom"])
        assert code == 2

    def test_list_command(self, capsys):
        client = setup_test_repository()
        repository = client.get_repository("octo", "site")
        tree = repository.trees[repository.commits[repository.refs["main"]].tree_sha]

        with patch("images_publisher.main._create_pipeline", _pipeline_for(client)):
            code = _run(["list", "--repo", "octo/site", "--folder", "images", "--token", "t"])

        assert code == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            f"images/keep.jpg\t{tree['images/keep.jpg']}",
            f"images/old.png\t{tree['images/old.png']}",
        ]

    def test_list_command_error(self, monkeypatch, capsys):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        client = setup_test_repository()

        with patch("images_publisher.main._create_pipeline", _pipeline_for(client)):
            code = _run(["list", "--repo", "octo/site"])

        assert code == 1
        assert "Error:" in capsys.readouterr().err


class TestArgumentParsing:
    """Tests for argument parsing helpers."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GITHUB_API_URL", raising=False)
        args = build_parser().parse_args(["publish", "a.png", "--repo", "octo/site"])

        assert args.branch == "main"
        assert args.mode == "fit"
        assert args.format == "webp"
        assert args.quality == 80
        assert args.workers == 1
        assert args.api_url == "https://api.github.com"

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
        args = build_parser().parse_args(["list", "--repo", "octo/site"])
        assert args.token == "ghp_env"

    @pytest.mark.parametrize(
        "extra, expected_type",
        [
            ([], FitOptions),
            (["--mode", "stretch"], StretchOptions),
            (["--mode", "side", "--side-option", "shortest"], SideOptions),
            (["--mode", "pad", "--background", "#000", "--position", "top"], PadOptions),
            (["--mode", "crop", "--position", "bottom-right"], CropOptions),
        ],
    )
    def test_build_resize_options(self, extra, expected_type):
        args = build_parser().parse_args(["publish", "--repo", "octo/site", *extra])
        assert isinstance(build_resize_options(args), expected_type)

    def test_build_resize_options_values(self):
        args = build_parser().parse_args(
            ["publish", "--repo", "octo/site", "--mode", "side", "--side-option", "height", "--no-upscale"]
        )
        options = build_resize_options(args)
        assert options.side == SideOption.HEIGHT
        assert options.no_upscale is True

        args = build_parser().parse_args(
            ["publish", "--repo", "octo/site", "--mode", "crop", "--position", "top-left"]
        )
        assert build_resize_options(args).position == Anchor.TOP_LEFT

    def test_build_request(self, image_file):
        args = build_parser().parse_args(
            [
                "publish",
                str(image_file),
                "--repo",
                "octo/site",
                "--token",
                "t",
                "--format",
                "JPEG",
                "--height",
                "50",
                "--delete",
                "images/a.png",
                "--delete",
                "images/b.png",
                "--message",
                "Refresh",
            ]
        )

        request = build_request(args)

        assert request.uploads[0].file_name == "photo.jpg"
        assert request.uploads[0].content == image_file.read_bytes()
        assert [d.path for d in request.deletions] == ["images/a.png", "images/b.png"]
        assert request.output.format == OutputFormat.JPG
        assert request.target.height == 50
        assert request.target.width is None
        assert request.message == "Refresh"

    def test_debug_enables_http_logging(self):
        args = build_parser().parse_args(
            ["list", "--repo", "octo/site", "--token", "t", "--debug"]
        )

        with patch("images_publisher.main.configure_http_logging") as mock_http_logging:
            _create_pipeline(_build_config(args))

        mock_http_logging.assert_called_once_with("DEBUG")
