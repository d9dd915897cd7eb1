"""Tests for funnelscout.services.repository."""

import base64
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from funnelscout.models.repository import RepositoryInfo
from funnelscout.services.repository import (
    RepositoryAnalysisError,
    analyze_repository,
    detect_repository,
    extract_benefits,
    extract_features,
    extract_installation,
    extract_key_phrases,
    extract_screenshot_hints,
    extract_usage,
    fetch_documentation,
    fetch_metadata,
    mine_documentation,
)

_README = """# Widget

A **blazing fast** widget toolkit.

## Features

- Supports dark mode out of the box
- Tiny bundle size
- Plugin system for custom renderers

## Why Widget?

- Saves hours of boilerplate every week
- Short

## Installation

```bash
# install it
pip install widget
```

## Usage

Run `widget serve` to start.

![Demo screenshot](docs/demo.gif)
<img src="docs/screen-1.png" alt="Screen">
![Logo](docs/logo.png)

## License

- Improves nothing here, just MIT licensed text
"""

_INFO = RepositoryInfo(owner="acme", name="widget", url="https://github.com/acme/widget")


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

class TestDetectRepository:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/widget",
            "https://github.com/acme/widget/",
            "https://github.com/acme/widget.git",
            "https://www.github.com/acme/widget/tree/main/docs",
            "github.com/acme/widget",
        ],
    )
    def test_repository_urls(self, url):
        info = detect_repository(url, host="github.com")
        assert info is not None
        assert (info.owner, info.name) == ("acme", "widget")
        assert info.url == "https://github.com/acme/widget"

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/",
            "https://github.com/acme",
            "https://gitlab.com/acme/widget",
            "https://acme.com/acme/widget",
            "https://example.com",
        ],
    )
    def test_non_repository_urls(self, url):
        assert detect_repository(url, host="github.com") is None

    def test_custom_host(self):
        info = detect_repository("https://host/acme/widget", host="host")
        assert info is not None
        assert info.url == "https://host/acme/widget"


# ---------------------------------------------------------------------------
# README mining
# ---------------------------------------------------------------------------

class TestMining:
    def test_features_from_section_then_keywords(self):
        assert extract_features(_README) == [
            "Supports dark mode out of the box",
            "Tiny bundle size",
            "Plugin system for custom renderers",
        ]

    def test_benefits_from_why_section_and_keywords(self):
        assert extract_benefits(_README) == [
            "Saves hours of boilerplate every week",
            "Improves nothing here, just MIT licensed text",
        ]

    def test_key_phrases_order(self):
        assert extract_key_phrases(_README) == [
            "Widget",
            "Features",
            "Why Widget?",
            "Installation",
            "Usage",
            "License",
            "blazing fast",
            "widget serve",
        ]

    def test_code_comments_are_not_headings(self):
        assert "install it" not in extract_key_phrases(_README)

    def test_installation_section(self):
        assert extract_installation(_README) == "```bash\n# install it\npip install widget\n```"

    def test_usage_section(self):
        usage = extract_usage(_README)
        assert usage.startswith("Run `widget serve` to start.")
        assert "## License" not in usage

    def test_section_text_capped(self):
        readme = "## Usage\n\n" + "x" * 800
        assert len(extract_usage(readme)) == 500

    def test_screenshot_hints(self):
        assert extract_screenshot_hints(_README) == ["docs/demo.gif", "docs/screen-1.png"]

    def test_decorated_heading(self):
        readme = "## ✨ Key Features:\n\n- Realtime collaboration built in\n"
        assert extract_features(readme) == ["Realtime collaboration built in"]

    def test_subsection_stays_in_section(self):
        readme = (
            "## Features\n\n- Top level feature item\n\n### Extras\n\n- Nested feature item here\n"
            "## Other\n\n- Not a listed thing at all\n"
        )
        assert extract_features(readme) == ["Top level feature item", "Nested feature item here"]

    def test_feature_cap(self):
        readme = "## Features\n" + "".join(f"- Feature number {i:02d}\n" for i in range(20))
        assert len(extract_features(readme)) == 10

    def test_empty_documentation(self):
        analysis = mine_documentation("")
        assert analysis.features == []
        assert analysis.benefits == []
        assert analysis.key_phrases == []
        assert analysis.installation_text == ""
        assert analysis.screenshot_hints == []


# ---------------------------------------------------------------------------
# GitHub API
# ---------------------------------------------------------------------------

def _get(response=None, side_effect=None):
    return patch.object(
        httpx.AsyncClient, "get", new=AsyncMock(return_value=response, side_effect=side_effect)
    )


@pytest.mark.asyncio
class TestGitHubApi:
    async def test_metadata(self):
        body = {"description": "A widget toolkit", "topics": ["ui"]}
        with _get(httpx.Response(200, json=body)) as mock:
            assert await fetch_metadata(_INFO) == body
        mock.assert_awaited_once_with("/repos/acme/widget")

    async def test_metadata_not_found(self):
        with _get(httpx.Response(404, json={"message": "Not Found"})):
            with pytest.raises(RepositoryAnalysisError):
                await fetch_metadata(_INFO)

    async def test_metadata_network_error(self):
        with _get(side_effect=httpx.ConnectError("refused")):
            with pytest.raises(RepositoryAnalysisError):
                await fetch_metadata(_INFO)

    async def test_readme_decoded(self):
        content = base64.encodebytes("# Widget ✓\n".encode("utf-8")).decode()
        with _get(httpx.Response(200, json={"content": content, "encoding": "base64"})):
            assert await fetch_documentation(_INFO) == "# Widget ✓\n"

    async def test_missing_readme_is_empty(self):
        with _get(httpx.Response(404, json={"message": "Not Found"})):
            assert await fetch_documentation(_INFO) == ""

    async def test_readme_network_error_is_empty(self):
        with _get(side_effect=httpx.ReadTimeout("slow")):
            assert await fetch_documentation(_INFO) == ""


@pytest.mark.asyncio
class TestAnalyzeRepository:
    async def test_combines_metadata_and_readme(self):
        with patch(
            "funnelscout.services.repository.fetch_metadata",
            new=AsyncMock(return_value={"description": "  A  widget\n toolkit ", "topics": ["ui", "python"]}),
        ), patch(
            "funnelscout.services.repository.fetch_documentation",
            new=AsyncMock(return_value=_README),
        ):
            analysis = await analyze_repository(_INFO)

        assert analysis.description == "A widget toolkit"
        assert analysis.topics == ["ui", "python"]
        assert analysis.documentation_text == _README
        assert analysis.features[0] == "Supports dark mode out of the box"

    async def test_missing_description(self):
        with patch(
            "funnelscout.services.repository.fetch_metadata",
            new=AsyncMock(return_value={"description": None}),
        ), patch(
            "funnelscout.services.repository.fetch_documentation", new=AsyncMock(return_value="")
        ):
            analysis = await analyze_repository(_INFO)
        assert analysis.description == ""
        assert analysis.topics == []

    async def test_metadata_error_propagates(self):
        with patch(
            "funnelscout.services.repository.fetch_metadata",
            new=AsyncMock(side_effect=RepositoryAnalysisError("GitHub API error: 404")),
        ), patch(
            "funnelscout.services.repository.fetch_documentation", new=AsyncMock(return_value="")
        ):
            with pytest.raises(RepositoryAnalysisError):
                await analyze_repository(_INFO)
