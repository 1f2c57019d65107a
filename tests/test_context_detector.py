# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for completion context detection.

Test coverage:
- Whole-call detection with the cursor anywhere inside the argument list
- Trailing partial detection while a string is still open
- Helper table spellings (route, view, Inertia, translation, env, container)
- Identifier boundaries (preview(, myconfig(, $this->view()
- Livewire component tags and schema table arguments
- Facade and fluent contexts
- Cursor clamping and non-matches
"""

import pytest

from laravel_symbols.context_detector import (
    HELPERS,
    SECOND_ARGUMENT_HELPERS,
    ContextDetector,
    closing_paren,
    detect,
)
from laravel_symbols.models import SymbolCategory


class TestWholeCall:
    """Complete helper calls on the line."""

    def test_cursor_inside_complete_call(self):
        line = "return view('admin.dashboard');"
        ctx = detect(line, line.index("dash"))

        assert ctx is not None
        assert ctx.category == SymbolCategory.VIEW
        assert ctx.partial_text == "admin.dashboard"
        assert ctx.match_start_offset == line.index("admin")
        assert ctx.helper == "view"

    def test_cursor_on_closing_paren_is_inside(self):
        line = "route('home')"
        ctx = detect(line, line.index(")"))

        assert ctx is not None
        assert ctx.category == SymbolCategory.ROUTE
        assert ctx.partial_text == "home"

    def test_cursor_before_call_is_outside(self):
        line = "$url = route('home');"
        assert detect(line, 0) is None

    def test_picks_call_containing_cursor(self):
        line = "<a href=\"{{ route('home') }}\">{{ __('nav.home') }}</a>"

        route_ctx = detect(line, line.index("home'"))
        trans_ctx = detect(line, line.index("nav."))

        assert route_ctx.category == SymbolCategory.ROUTE
        assert route_ctx.partial_text == "home"
        assert trans_ctx.category == SymbolCategory.TRANSLATION
        assert trans_ctx.partial_text == "nav.home"

    def test_nested_call_innermost_wins(self):
        line = "redirect(route('login', ['next' => config('app.url')]));"
        ctx = detect(line, line.index("app.url"))

        assert ctx.category == SymbolCategory.CONFIG
        assert ctx.partial_text == "app.url"

    def test_double_quotes(self):
        ctx = detect('env("APP_KEY")', 6)
        assert ctx.category == SymbolCategory.ENV
        assert ctx.partial_text == "APP_KEY"

    def test_other_quote_inside_string(self):
        line = '{{ __("Don\'t have an account?") }}'
        ctx = detect(line, 15)

        assert ctx is not None
        assert ctx.category == SymbolCategory.TRANSLATION
        assert ctx.partial_text == "Don't have an account?"

    def test_second_argument_helper(self):
        line = "Route::inertia('/about', 'About/Index');"
        ctx = detect(line, line.index("Index"))

        assert ctx.category == SymbolCategory.VIEW
        assert ctx.partial_text == "About/Index"
        assert ctx.helper == "Route::inertia"

    @pytest.mark.parametrize(
        "line,category,partial",
        [
            ("to_route('dashboard')", SymbolCategory.ROUTE, "dashboard"),
            ("View::make('emails.welcome')", SymbolCategory.VIEW, "emails.welcome"),
            ("Inertia::render('Auth/Login')", SymbolCategory.VIEW, "Auth/Login"),
            ("return inertia('Dashboard');", SymbolCategory.VIEW, "Dashboard"),
            ("Config::get('mail.default')", SymbolCategory.CONFIG, "mail.default"),
            ("trans('auth.failed')", SymbolCategory.TRANSLATION, "auth.failed"),
            ("trans_choice('messages.apples', 3)", SymbolCategory.TRANSLATION, "messages.apples"),
            ("@lang('auth.throttle')", SymbolCategory.TRANSLATION, "auth.throttle"),
            ("app('cache')", SymbolCategory.CONTAINER, "cache"),
            ("resolve('events')", SymbolCategory.CONTAINER, "events"),
        ],
    )
    def test_helper_table(self, line, category, partial):
        ctx = detect(line, line.index(partial) + 1)

        assert ctx is not None
        assert ctx.category == category
        assert ctx.partial_text == partial


class TestTrailingPartial:
    """Open strings ending at the cursor."""

    def test_unclosed_string(self):
        line = "return view('admin."
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.VIEW
        assert ctx.partial_text == "admin."
        assert ctx.match_start_offset == len("return view('")

    def test_empty_partial(self):
        line = "config('"
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.CONFIG
        assert ctx.partial_text == ""

    def test_cursor_mid_line_uses_prefix_only(self):
        line = "__('auth.fa') . $suffix"
        # Whole-call pass wins when the call is complete
        ctx = detect(line, line.index("fa'") + 2)
        assert ctx.partial_text == "auth.fa"

    def test_second_argument_partial(self):
        line = "Route::inertia('/about', 'Ab"
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.VIEW
        assert ctx.partial_text == "Ab"

    @pytest.mark.parametrize("spelling,category", HELPERS)
    def test_every_helper_with_open_string(self, spelling, category):
        uri = "'/x', " if spelling in SECOND_ARGUMENT_HELPERS else ""
        line = f"$value = {spelling}({uri}'partial.na"
        ctx = detect(line, len(line))

        assert ctx is not None
        assert ctx.category == category
        assert ctx.helper == spelling
        assert ctx.partial_text == "partial.na"
        assert ctx.match_start_offset == line.index("partial")

    def test_other_quote_inside_open_string(self):
        line = '{{ __("Don\'t have'
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.TRANSLATION
        assert ctx.partial_text == "Don't have"
        assert ctx.match_start_offset == line.index("Don")

    def test_closed_string_is_not_trailing(self):
        line = "view('home') . 'x"
        assert detect(line, len(line)) is None


class TestIdentifierBoundaries:
    """Helpers must not be the tail of a longer identifier."""

    def test_preview_is_not_view(self):
        line = "preview('x')"
        assert detect(line, 9) is None

    def test_myconfig_is_not_config(self):
        line = "myconfig('app.name"
        assert detect(line, len(line)) is None

    def test_method_call_view_is_accepted(self):
        line = "return $this->view('emails.order');"
        ctx = detect(line, line.index("order"))

        assert ctx.category == SymbolCategory.VIEW
        assert ctx.partial_text == "emails.order"

    def test_name_binding_is_not_a_helper(self):
        line = "Route::get('/x', fn () => 1)->name('x.y"
        ctx = detect(line, len(line))
        assert ctx is None

    def test_static_call_of_other_class_is_not_view(self):
        line = "Mail::view('emails.x"
        assert detect(line, len(line)) is None


class TestFacadeAndFluent:
    """Static-call and method-chain contexts."""

    def test_facade_context(self):
        line = "DB::ta"
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.FACADE
        assert ctx.helper == "DB"
        assert ctx.partial_text == "ta"
        assert ctx.match_start_offset == 4

    def test_namespaced_facade(self):
        line = "\\Cache::"
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.FACADE
        assert ctx.helper == "Cache"
        assert ctx.partial_text == ""

    def test_self_static_parent_are_not_facades(self):
        for keyword in ("self", "static", "parent"):
            assert detect(f"{keyword}::boot", len(keyword) + 6) is None

    def test_fluent_context(self):
        line = "$table->str"
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.FLUENT
        assert ctx.partial_text == "str"
        assert ctx.helper == "$table"


class TestLivewireAndTables:
    """Livewire component tags and schema table arguments."""

    def test_component_tag_while_typing(self):
        line = "<div><livewire:admin.us"
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.LIVEWIRE
        assert ctx.partial_text == "admin.us"
        assert ctx.match_start_offset == line.index("admin")
        assert ctx.helper == "<livewire:"

    def test_complete_component_tag(self):
        line = "<livewire:user-table :users=\"$users\" />"
        ctx = detect(line, line.index("table"))

        assert ctx.partial_text == "user-table"

    def test_cursor_in_tag_attributes_is_outside(self):
        line = "<livewire:counter wire:key=\"main\" />"
        assert detect(line, line.index("main")) is None

    def test_livewire_directive(self):
        line = "@livewire('cou"
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.LIVEWIRE
        assert ctx.partial_text == "cou"

    @pytest.mark.parametrize(
        "line",
        ["DB::table('us", "Schema::create('us", "Schema::table('us", "Schema::hasTable('us"],
    )
    def test_table_argument(self, line):
        ctx = detect(line, len(line))

        assert ctx.category == SymbolCategory.TABLE
        assert ctx.partial_text == "us"

    def test_facade_method_before_paren(self):
        line = "DB::table('users')"
        assert detect(line, line.index("(")).category == SymbolCategory.FACADE


class TestCursorHandling:
    def test_cursor_clamped_to_line_length(self):
        line = "route('ho"
        ctx = detect(line, 500)

        assert ctx.partial_text == "ho"

    def test_negative_cursor_clamped(self):
        assert detect("route('home')", -3) is None

    def test_plain_text(self):
        assert detect("just some text", 5) is None

    def test_empty_line(self):
        assert detect("", 0) is None


class TestCustomHelperTable:
    def test_detector_with_custom_helpers(self):
        detector = ContextDetector(helpers=(("asset", "view"),))
        ctx = detector.detect("asset('img/logo.png')", 8)

        assert ctx.category == "view"
        assert ctx.partial_text == "img/logo.png"
        assert detector.detect("route('home')", 8) is None


class TestClosingParen:
    def test_skips_quoted_parens(self):
        line = "f('a)b', x)"
        assert closing_paren(line, 2) == len(line) - 1

    def test_unclosed_returns_line_length(self):
        assert closing_paren("route('x'", 6) == len("route('x'")
