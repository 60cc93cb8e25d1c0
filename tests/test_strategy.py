"""Tests for chat_index.strategy: site strategies and the indexer."""
from __future__ import annotations

from chat_index.config import IndexerConfig
from chat_index.html_utils import parse_html
from chat_index.strategy import (
    STRATEGIES,
    ChatIndexer,
    StrategyKind,
    extract_message,
    normalize_host,
    parse_conversation,
    select_strategy,
)
from chat_index.visibility import project

PY_CODE = "def greet(name):\n    return 'hi ' + name"  # 40 chars

MOCK_PAGE = f"""
<html><body>
<div class="chat-container">
  <div class="message user">  How do I greet someone?  </div>
  <div class="message ai">
    <h1>Intro</h1>
    <p>Some words.</p>
    <h2>Background</h2>
    <pre><code class="language-python">{PY_CODE}</code></pre>
    <h2>Next</h2>
  </div>
</div>
</body></html>
"""

CHATGPT_PAGE = """
<html><body><main>
  <article>
    <div data-message-author-role="user">
      <div class="whitespace-pre-wrap">Explain <b>setup</b></div>
    </div>
  </article>
  <article>
    <div data-message-author-role="assistant">
      <div class="markdown prose">
        <h2>Install</h2>
        <p>Run <code>pip</code> first.</p>
        <pre><div>bash</div><code class="hljs language-bash">pip install chat-index</code></pre>
        <h3>Verify</h3>
      </div>
    </div>
  </article>
  <article>
    <div data-message-author-role="assistant">
      <div class="markdown">Sure, no structure here.</div>
    </div>
  </article>
</main></body></html>
"""


# ── selection ───────────────────────────────────────────────────────


class TestSelection:
    def test_registration_order(self) -> None:
        assert list(STRATEGIES) == [StrategyKind.MOCK, StrategyKind.CHATGPT]

    def test_mock_hosts(self) -> None:
        for host in ("localhost", "127.0.0.1", "http://localhost:5173/chat.html"):
            strategy = select_strategy(host)
            assert strategy is not None
            assert strategy.kind is StrategyKind.MOCK

    def test_chatgpt_hosts(self) -> None:
        for host in ("chatgpt.com", "https://chatgpt.com/c/abc", "chat.openai.com"):
            strategy = select_strategy(host)
            assert strategy is not None
            assert strategy.kind is StrategyKind.CHATGPT

    def test_unsupported_host(self) -> None:
        assert select_strategy("example.org") is None
        assert select_strategy("") is None

    def test_normalize_host(self) -> None:
        assert normalize_host("HTTPS://ChatGPT.com/c/1") == "chatgpt.com"
        assert normalize_host(" localhost ") == "localhost"


# ── mock strategy end to end ────────────────────────────────────────


class TestMockStrategy:
    def _parse(self):
        soup = parse_html(MOCK_PAGE)
        return soup, parse_conversation(STRATEGIES[StrategyKind.MOCK], soup)

    def test_sections(self) -> None:
        _, sections = self._parse()
        assert [(s.id, s.title) for s in sections] == [
            ("default", "Conversation"),
            ("section-1", "Intro"),
        ]

    def test_author_unit(self) -> None:
        _, sections = self._parse()
        (unit,) = sections[0].units
        assert unit.id == "msg-0"
        assert unit.role == "author"
        assert unit.unit_type == "plain-text"
        assert unit.text == "How do I greet someone?"
        assert unit.depth == 0

    def test_structured_units_and_depths(self) -> None:
        _, sections = self._parse()
        units = sections[1].units
        assert [u.id for u in units] == [
            "msg-1-h1-0", "msg-1-h2-1", "msg-1-code-2", "msg-1-h2-3",
        ]
        assert [u.text for u in units] == ["Intro", "Background", PY_CODE, "Next"]
        assert [u.depth for u in units] == [0, 1, 2, 1]
        assert units[2].language == "python"

    def test_collapse_intro_leaves_only_intro(self) -> None:
        _, sections = self._parse()
        visible = project(sections[1].units, {"msg-1-h1-0"})
        assert [u.text for u in visible] == ["Intro"]

    def test_nodes_annotated(self) -> None:
        soup, _ = self._parse()
        assert soup.find("h2")["data-chat-index-id"] == "msg-1-h2-1"
        assert soup.find(class_="user")["data-chat-index-id"] == "msg-0"

    def test_source_references(self) -> None:
        soup, sections = self._parse()
        assert sections[1].units[0].source is soup.find("h1")

    def test_missing_container(self) -> None:
        soup = parse_html("<div class='message ai'><h1>x</h1></div>")
        assert parse_conversation(STRATEGIES[StrategyKind.MOCK], soup) == []

    def test_reparse_is_stable(self) -> None:
        soup = parse_html(MOCK_PAGE)
        strategy = STRATEGIES[StrategyKind.MOCK]
        assert parse_conversation(strategy, soup) == parse_conversation(strategy, soup)


# ── chatgpt strategy ────────────────────────────────────────────────


class TestChatGPTStrategy:
    def _sections(self):
        return parse_conversation(STRATEGIES[StrategyKind.CHATGPT], parse_html(CHATGPT_PAGE))

    def test_single_default_section(self) -> None:
        sections = self._sections()
        assert len(sections) == 1
        assert sections[0].title == "Conversation"

    def test_units(self) -> None:
        units = self._sections()[0].units
        assert [(u.id, u.role, u.unit_type, u.depth) for u in units] == [
            ("gpt-msg-0", "author", "plain-text", 0),
            ("gpt-msg-1-h2-0", "assistant", "heading", 0),
            ("gpt-msg-1-code-1", "assistant", "code", 1),
            ("gpt-msg-1-h3-2", "assistant", "heading", 1),
            ("gpt-msg-2-text", "assistant", "plain-text", 0),
        ]

    def test_author_text_from_content_root(self) -> None:
        units = self._sections()[0].units
        assert units[0].text == "Explain setup"

    def test_fallback_text(self) -> None:
        units = self._sections()[0].units
        assert units[-1].text == "Sure, no structure here."

    def test_role_attribute_fallback_without_articles(self) -> None:
        html = """
        <div data-message-author-role="user">Hi</div>
        <div data-message-author-role="assistant"><div class="markdown"><h1>Plan</h1></div></div>
        """
        sections = parse_conversation(STRATEGIES[StrategyKind.CHATGPT], parse_html(html))
        assert [s.title for s in sections] == ["Conversation", "Plan"]
        assert sections[1].id == "section-1"

    def test_no_messages(self) -> None:
        assert parse_conversation(STRATEGIES[StrategyKind.CHATGPT], parse_html("<p>x</p>")) == []

    def test_author_annotation_overwritten(self) -> None:
        soup = parse_html('<article data-chat-index-id="old"><div data-message-author-role="user">Hi</div></article>')
        extract_message(STRATEGIES[StrategyKind.CHATGPT], soup.article, 0)
        assert soup.article["data-chat-index-id"] == "gpt-msg-0"


# ── per-message edge cases ──────────────────────────────────────────


class TestExtractMessage:
    def test_empty_assistant_message_gives_empty_text_unit(self) -> None:
        soup = parse_html('<div class="message ai"></div>')
        message = extract_message(STRATEGIES[StrategyKind.MOCK], soup.div, 3)
        assert message.id == "msg-3"
        assert [(u.id, u.text) for u in message.units] == [("msg-3-text", "")]

    def test_short_code_only_falls_back_to_text(self) -> None:
        soup = parse_html('<div class="message ai"><pre><code>x = 1</code></pre></div>')
        message = extract_message(STRATEGIES[StrategyKind.MOCK], soup.div, 0)
        assert [u.unit_type for u in message.units] == ["plain-text"]
        assert message.units[0].text == "x = 1"

    def test_heading_and_code_interleave_in_document_order(self) -> None:
        soup = parse_html(
            '<div class="message ai">'
            "<pre><code>first block of code</code></pre>"
            "<h2>Title</h2>"
            "<pre><code>second block of code</code></pre>"
            "</div>"
        )
        message = extract_message(STRATEGIES[StrategyKind.MOCK], soup.div, 0)
        assert [u.unit_type for u in message.units] == ["code", "heading", "code"]
        assert [u.depth for u in message.units] == [0, 0, 1]

    def test_custom_id_attribute(self) -> None:
        soup = parse_html('<div class="message ai"><h2>T</h2></div>')
        config = IndexerConfig(id_attribute="data-outline")
        extract_message(STRATEGIES[StrategyKind.MOCK], soup.div, 0, config=config)
        assert soup.h2["data-outline"] == "msg-0-h2-0"


# ── ChatIndexer ─────────────────────────────────────────────────────


class TestChatIndexer:
    def test_unsupported_site_yields_empty(self) -> None:
        indexer = ChatIndexer("example.org")
        assert indexer.active is None
        assert indexer.reparse(parse_html(MOCK_PAGE)) == []

    def test_lazy_reselection_after_navigation(self) -> None:
        current = {"host": "example.org"}
        indexer = ChatIndexer(lambda: current["host"])
        assert indexer.reparse(parse_html(MOCK_PAGE)) == []
        current["host"] = "localhost"
        sections = indexer.reparse(parse_html(MOCK_PAGE))
        assert indexer.active is STRATEGIES[StrategyKind.MOCK]
        assert len(sections) == 2

    def test_selection_sticks_once_matched(self) -> None:
        current = {"host": "localhost"}
        indexer = ChatIndexer(lambda: current["host"])
        current["host"] = "chatgpt.com"
        indexer.reparse(parse_html(MOCK_PAGE))
        assert indexer.active is STRATEGIES[StrategyKind.MOCK]

    def test_locate(self) -> None:
        indexer = ChatIndexer("localhost")
        soup = parse_html(MOCK_PAGE)
        indexer.reparse(soup)
        assert indexer.locate("msg-1-code-2") is soup.find("code")

    def test_locate_not_found(self) -> None:
        indexer = ChatIndexer("localhost")
        assert indexer.locate("msg-0") is None
        indexer.reparse(parse_html(MOCK_PAGE))
        assert indexer.locate("nope") is None
        assert indexer.locate("") is None

    def test_strategy_parse_method(self) -> None:
        strategy = STRATEGIES[StrategyKind.MOCK]
        assert strategy.can_handle("localhost")
        assert len(strategy.parse(parse_html(MOCK_PAGE))) == 2

    def test_locate_follows_message_inserted_in_place(self) -> None:
        indexer = ChatIndexer("localhost")
        soup = parse_html(MOCK_PAGE)
        indexer.reparse(soup)
        first_user = soup.find("div", class_="user")

        newcomer = soup.new_tag("div", attrs={"class": "message user"})
        newcomer.string = "Earlier question"
        soup.find("div", class_="chat-container").insert(0, newcomer)
        indexer.reparse(soup)

        assert indexer.locate("msg-0") is newcomer
        assert indexer.locate("msg-1") is first_user
        assert first_user["data-chat-index-id"] == "msg-1"

    def test_locate_after_code_block_shrinks(self) -> None:
        page = f"""
        <div class="chat-container">
          <div class="message ai">
            <pre><code id="first">{PY_CODE}</code></pre>
            <pre><code id="second">{PY_CODE}</code></pre>
          </div>
        </div>
        """
        indexer = ChatIndexer("localhost")
        soup = parse_html(page)
        indexer.reparse(soup)
        assert indexer.locate("msg-0-code-0") is soup.find(id="first")

        soup.find(id="first").string = "x"
        indexer.reparse(soup)

        assert indexer.locate("msg-0-code-0") is soup.find(id="second")
        assert indexer.locate("msg-0-code-1") is None
        assert not soup.find(id="first").has_attr("data-chat-index-id")
        assert len(soup.find_all(attrs={"data-chat-index-id": "msg-0-code-0"})) == 1
