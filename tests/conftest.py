# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures: a small but realistic Laravel project tree.

Line numbers in the files below are asserted by several test modules, so
edit them with care.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

from laravel_symbols.config import Config
from laravel_symbols.project import ProjectContext

WEB_ROUTES = "\n".join(
    [
        "<?php",
        "",
        "use App\\Http\\Controllers\\Admin\\UserController;",
        "use App\\Http\\Controllers\\DashboardController;",
        "",
        "Route::get('/', function () {",
        "    return view('welcome');",
        "})->name('home');",
        "",
        "Route::get('/dashboard', [DashboardController::class, 'index'])->name('dashboard');",
        "Route::get('/admin/users', [UserController::class, 'index'])->name('admin.users.index');",
        "Route::post('/profile', 'ProfileController@update')->name('profile.update');",
    ]
)

API_ROUTES = "\n".join(
    [
        "<?php",
        "",
        "Route::get('/user', fn () => request()->user())->name('api.user');",
        "Route::get('/dashboard', fn () => [])->name('dashboard');",
    ]
)

DASHBOARD_CONTROLLER = "\n".join(
    [
        "<?php",
        "",
        "namespace App\\Http\\Controllers;",
        "",
        "class DashboardController extends Controller",
        "{",
        "    public function index()",
        "    {",
        "        return view('dashboard');",
        "    }",
        "}",
    ]
)

REPORT_CONTROLLER = "\n".join(
    [
        "<?php",
        "",
        "namespace App\\Http\\Controllers\\Admin;",
        "",
        "class ReportController extends Controller",
        "{",
        "    public function __invoke()",
        "    {",
        "        return inertia('Admin/Reports');",
        "    }",
        "}",
    ]
)

APP_CONFIG = "\n".join(
    [
        "<?php",
        "",
        "return [",
        "    'name' => env('APP_NAME', 'Laravel'),",
        "    'debug' => (bool) env('APP_DEBUG', false),",
        "];",
    ]
)

MAIL_CONFIG = "\n".join(
    [
        "<?php",
        "",
        "return [",
        "    'default' => env('MAIL_MAILER', 'smtp'),",
        "    'mailers' => [",
        "        'smtp' => [",
        "            'host' => env('MAIL_HOST', '127.0.0.1'),",
        "            'port' => 587,",
        "        ],",
        "        'log' => [",
        "            'channel' => env('MAIL_LOG_CHANNEL'),",
        "        ],",
        "    ],",
        "    'from' => [",
        "        'address' => 'hello@example.com',",
        "    ],",
        "    '0' => 'numeric',",
        "];",
    ]
)

EN_AUTH = "\n".join(
    [
        "<?php",
        "",
        "return [",
        "    'failed' => 'These credentials do not match our records.',",
        "    'throttle' => 'Too many login attempts.',",
        "];",
    ]
)

FR_AUTH = "\n".join(
    [
        "<?php",
        "",
        "return [",
        "    'failed' => 'Ces identifiants ne correspondent pas.',",
        "    'password' => 'Mot de passe incorrect.',",
        "];",
    ]
)

FR_JSON = "\n".join(
    [
        "{",
        '    "Welcome": "Bienvenue",',
        '    "Log in": "Connexion"',
        "}",
    ]
)

DOTENV = "\n".join(
    [
        "APP_NAME=Laravel",
        "APP_ENV=local",
        "# DB_PASSWORD=secret",
        "",
        "DB_CONNECTION=mysql",
    ]
)

DOTENV_EXAMPLE = "\n".join(
    [
        "APP_NAME=Laravel",
        "MAIL_HOST=127.0.0.1",
        "export QUEUE_CONNECTION=sync",
        "lowercase=ignored",
    ]
)

USER_MODEL = "\n".join(
    [
        "<?php",
        "",
        "namespace App\\Models;",
        "",
        "use Illuminate\\Database\\Eloquent\\Model;",
        "",
        "class User extends Model",
        "{",
        "    public function posts()",
        "    {",
        "        return $this->hasMany(Post::class);",
        "    }",
        "",
        "    public function roles()",
        "    {",
        "        return $this->belongsToMany(",
        "            \\App\\Models\\Role::class,",
        "            'role_user'",
        "        );",
        "    }",
        "",
        "    public function getNameAttribute()",
        "    {",
        "        return ucfirst($this->name);",
        "    }",
        "}",
    ]
)

POST_MODEL = "\n".join(
    [
        "<?php",
        "",
        "namespace App\\Models;",
        "",
        "use Illuminate\\Database\\Eloquent\\Model;",
        "",
        "class Post extends Model",
        "{",
        "    public function author()",
        "    {",
        "        return $this->belongsTo('App\\Models\\User', 'user_id');",
        "    }",
        "",
        "    public function commentable()",
        "    {",
        "        return $this->morphTo();",
        "    }",
        "}",
    ]
)

IDE_HELPER = "\n".join(
    [
        "<?php",
        "namespace Illuminate\\Support\\Facades {",
        "    class DB extends Facade {",
        "        /**",
        "         * @method static \\Illuminate\\Database\\Query\\Builder table(string $table)",
        "         * @method static array select(string $query, array $bindings = [])",
        "         * @method static bool transaction(\\Closure $callback)",
        "         */",
        "    }",
        "    class Cache extends Facade {",
        "        /**",
        "         * @method static mixed get(string $key, mixed $default = null)",
        "         * @method static bool put(string $key, $value, $ttl = null)",
        "         */",
        "    }",
        "}",
    ]
)

PHPSTORM_META = "\n".join(
    [
        "<?php",
        "namespace PHPSTORM_META {",
        "    override(\\app(0), map([",
        "        '' => '@',",
        "        'cache' => \\Illuminate\\Cache\\CacheManager::class,",
        "        'events' => \\Illuminate\\Events\\Dispatcher::class,",
        "    ]));",
        "}",
    ]
)

COUNTER_COMPONENT = "\n".join(
    [
        "<?php",
        "",
        "namespace App\\Livewire;",
        "",
        "use Livewire\\Component;",
        "",
        "class Counter extends Component",
        "{",
        "    public $count = 0;",
        "",
        "    public function render()",
        "    {",
        "        return view('livewire.counter');",
        "    }",
        "}",
    ]
)

USER_TABLE_COMPONENT = "\n".join(
    [
        "<?php",
        "",
        "namespace App\\Livewire\\Admin;",
        "",
        "use Livewire\\Component;",
        "",
        "final class UserTable extends Component",
        "{",
        "}",
    ]
)

MIGRATION_HEADER = [
    "<?php",
    "",
    "use Illuminate\\Database\\Migrations\\Migration;",
    "use Illuminate\\Database\\Schema\\Blueprint;",
    "use Illuminate\\Support\\Facades\\Schema;",
    "",
    "return new class extends Migration",
    "{",
    "    public function up(): void",
    "    {",
]

CREATE_USERS_MIGRATION = "\n".join(
    MIGRATION_HEADER
    + [
        "        Schema::create('users', function (Blueprint $table) {",
        "            $table->id();",
        "            $table->string('email')->unique();",
        "            $table->rememberToken();",
        "            $table->timestamps();",
        "        });",
        "    }",
        "",
        "    public function down(): void",
        "    {",
        "        Schema::dropIfExists('users');",
        "    }",
        "};",
    ]
)

CREATE_POSTS_MIGRATION = "\n".join(
    MIGRATION_HEADER
    + [
        "        Schema::create('posts', function (Blueprint $table) {",
        "            $table->id();",
        "            $table->foreignId('user_id')->constrained('users');",
        "            $table->string('title');",
        "            $table->morphs('commentable');",
        "            $table->index('title');",
        "        });",
        "    }",
        "",
        "    public function down(): void",
        "    {",
        "        Schema::dropIfExists('posts');",
        "    }",
        "};",
    ]
)

ADD_TEAM_MIGRATION = "\n".join(
    MIGRATION_HEADER
    + [
        "        Schema::table('users', function (Blueprint $table) {",
        "            $table->unsignedBigInteger('team_id')->nullable();",
        "            $table->foreign('team_id')->references('id')->on('teams');",
        "        });",
        "    }",
        "",
        "    public function down(): void",
        "    {",
        "        Schema::table('users', function (Blueprint $table) {",
        "            $table->dropColumn('team_id');",
        "            $table->string('legacy_code');",
        "        });",
        "    }",
        "};",
    ]
)

PROJECT_FILES: Dict[str, str] = {
    "artisan": "#!/usr/bin/env php\n<?php\n",
    "composer.json": json.dumps({"require": {"laravel/framework": "^11.0"}}),
    "routes/web.php": WEB_ROUTES,
    "routes/api.php": API_ROUTES,
    "app/Http/Controllers/DashboardController.php": DASHBOARD_CONTROLLER,
    "app/Http/Controllers/Admin/ReportController.php": REPORT_CONTROLLER,
    "resources/views/welcome.blade.php": "<h1>Welcome</h1>\n",
    "resources/views/dashboard.blade.php": "@extends('layouts.app')\n",
    "resources/views/layouts/app.blade.php": "<html>@yield('content')</html>\n",
    "resources/views/admin/users/index.blade.php": "<table></table>\n",
    "resources/js/Pages/Admin/Dashboard.tsx": "export default function Dashboard() {}\n",
    "resources/js/Pages/Auth/Login.vue": "<template></template>\n",
    "config/app.php": APP_CONFIG,
    "config/mail.php": MAIL_CONFIG,
    "lang/en/auth.php": EN_AUTH,
    "lang/fr/auth.php": FR_AUTH,
    "lang/fr.json": FR_JSON,
    "lang/vendor/package/en/messages.php": "<?php\nreturn ['hidden' => 'x'];\n",
    ".env": DOTENV,
    ".env.example": DOTENV_EXAMPLE,
    "app/Models/User.php": USER_MODEL,
    "app/Models/Post.php": POST_MODEL,
    "_ide_helper.php": IDE_HELPER,
    ".phpstorm.meta.php": PHPSTORM_META,
    "app/Livewire/Counter.php": COUNTER_COMPONENT,
    "app/Livewire/CounterTest.php": "<?php\nclass CounterTest {}\n",
    "app/Livewire/Admin/UserTable.php": USER_TABLE_COMPONENT,
    "database/migrations/2014_10_12_000000_create_users_table.php": CREATE_USERS_MIGRATION,
    "database/migrations/2024_01_01_000000_create_posts_table.php": CREATE_POSTS_MIGRATION,
    "database/migrations/2024_02_01_000000_add_team_to_users_table.php": ADD_TEAM_MIGRATION,
}


def write_files(root: Path, files: Dict[str, str]) -> None:
    """Write a mapping of project-relative paths to file contents."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def laravel_project(tmp_path: Path) -> Path:
    """A Laravel project root populated with PROJECT_FILES."""
    root = tmp_path / "app"
    root.mkdir()
    write_files(root, PROJECT_FILES)
    return root.resolve()


@pytest.fixture
def make_context(laravel_project: Path) -> Callable[..., ProjectContext]:
    """Factory for a ProjectContext over laravel_project with config overrides.

    Background route warm-up is disabled unless explicitly requested.
    """

    def _make(**overrides: Any) -> ProjectContext:
        values: Dict[str, Any] = {"warm_up_routes": False}
        values.update(overrides)
        return ProjectContext(root=laravel_project, config=Config.from_dict(values))

    return _make


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
