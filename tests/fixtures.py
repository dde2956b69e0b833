"""Shared test data and helpers for the codedoc test suite."""

from pathlib import Path

from codedoc.backends import ProduceResult


def write_tree(root: Path, files: dict) -> None:
    """Create ``files`` (relative path -> text) under ``root``."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


class FakeProducer:
    """Stands in for ``ContentProducer``; records every call."""

    def __init__(self, text="Generated documentation body.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def produce(self, file_path, content, context=None):
        self.calls.append((Path(file_path), content, context))
        if self.error is not None:
            return ProduceResult(error=self.error)
        return ProduceResult(text=self.text)

    @property
    def produced_names(self):
        return sorted(path.name for path, _, _ in self.calls)


SAMPLE_CONTROLLER = """<?php

namespace App\\Http\\Controllers;

use App\\Models\\User;
use Illuminate\\Http\\Request;

class UserController extends Controller
{
    public function __construct()
    {
        $this->middleware('auth');
    }

    public function index()
    {
        return User::all();
    }

    public function show(Request $request, $id)
    {
        return User::findOrFail($id);
    }
}
"""

SAMPLE_MODEL = """<?php

namespace App\\Models;

use Illuminate\\Database\\Eloquent\\Model;

class User extends Model
{
    protected $fillable = ['name', 'email'];

    public function posts()
    {
        return $this->hasMany(Post::class);
    }

    public function team()
    {
        return $this->belongsTo('App\\Models\\Team');
    }
}
"""

SAMPLE_ROUTES = """<?php

use App\\Http\\Controllers\\UserController;

Route::get('/users', 'UserController@index')->name('users.index');
Route::get('/users/{id}', [UserController::class, 'show'])
    ->name('users.show');
Route::post('/users', 'UserController@store');
"""

SAMPLE_CONFIG_YAML = """app:
  name: Example
  debug: false
"""

SAMPLE_APP_TREE = {
    "Http/Controllers/UserController.php": SAMPLE_CONTROLLER,
    "Models/User.php": SAMPLE_MODEL,
    "config.yaml": SAMPLE_CONFIG_YAML,
    "vendor/package/Ignored.php": "<?php // third party",
    ".hidden/Secret.php": "<?php // hidden",
    "README.txt": "not documented",
}

ELIGIBLE_APP_FILES = [
    "Http/Controllers/UserController.php",
    "Models/User.php",
    "config.yaml",
]

SAMPLE_RESPONSE_WITH_REASONING = """<think>
The user wants docs.
Let me plan the sections.
</think>
## Overview

Handles users."""
