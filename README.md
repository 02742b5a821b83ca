# binkit

Building blocks for an installer that uses prebuilt release binaries
instead of compiling from source, and that keeps track of what it installed.

## What it offers

- **URL templates** (`binkit.template`): `Template.parse` reads templates such
  as `{ repo }/releases/download/v{ version }/{ name }-{ target }{ archive-suffix }`.
  Braces are escaped with a backslash. `keys`, `has_key` and
  `has_any_of_keys` report which keys a template uses, `render` fills them
  from a mapping, a callable or an object with a `get_value(key)` method, and
  `+` joins templates or appends text. Malformed templates raise
  `TemplateParseError`. Missing values raise `TemplateRenderError`.
- **Hosting detection** (`binkit.hosting`):
  `RepositoryHost.guess_git_hosting_services(url)` recognises GitHub, GitLab,
  BitBucket, SourceForge and Codeberg from the URL's domain.
  `default_pkg_url_templates()` lists the default download URL templates for
  a host, or returns `None` for an unknown one.
- **Render context** (`binkit.context.Context`): built with
  `Context.from_data_with_repo` from crate data, a target, an archive suffix, a
  repository and a subcrate. It supplies the keys `name`, `repo`, `target`,
  `version`, `archive-format` (with its alias `format`), `archive-suffix`,
  `binary-ext` (`.exe` for Windows targets), `subcrate` and `url`. Any other
  key is passed on to the target-related info you give it.
  `render_url`/`render_url_with` render a template and check that the result
  is an absolute URL. If it is not, they raise `FetchError`.
- **Fetch data** (`binkit.fetch_data`): `Data`, `RepoInfo`, `SignaturePolicy`
  and the `FetchError` family (`InvalidPkgFmtError`, `MissingSignatureError`,
  `InvalidSignatureError`). `detect_subcrate(url, host)` splits a subcrate
  path off repository URLs such as
  `https://github.com/owner/repo/tree/main/crates/cli` and returns
  `("https://github.com/owner/repo", "cli")`.
- **Racing lookups** (`binkit.futures_resolver.FuturesResolver`): push
  coroutines, which start at once. `await resolve()` returns the first result
  that is not `None` and cancels the rest. Coroutines that raise are logged
  and skipped.
- **GitHub API errors** (`binkit.gh_errors`): the `GhApiError` hierarchy
  (`RateLimitError`, `NotFoundError`, `UnauthorizedError`,
  `GraphQLErrorsError`, `GhApiContextError`) and `with_context`.
  `GhGraphQLErrors.from_json` parses a GraphQL `errors` list, and
  `from_graphql_errors` classifies it as a rate limit, a missing resource or
  a general failure.
- **Manifests**:
  - `binkit.crate_version_source`: `CrateInfo`, `CrateSource`, `Source` and
    `CrateVersionSource`, which parses and formats the
    `name version (source)` strings.
  - `binkit.cargo_crates_v1.CratesToml` reads and writes `.crates.toml`.
  - `binkit.binstall_crates_v1` handles `crates-v1.json`. Its `Records` class
    holds one record per crate name, with later entries replacing earlier
    ones. The module-level `append_to_path`/`append` functions add records to
    the file.
  - `binkit.crates_manifests.Manifests` keeps both files in step.
  - `binkit.cargo_config.Config` loads `config.toml` and resolves relative
    paths against the directory that holds it. A missing file gives an empty
    configuration.
  - Manifest files are opened under advisory file locks (`binkit.locked_file`).
    The cargo home is `$CARGO_HOME`, or `~/.cargo` when that is not set.

## What it does not do

The package does no network access. It renders and checks download URLs but
does not download, extract or verify signatures of packages. It does not
query the GitHub API; it only provides the error types for it. There is no
command-line program.

## Installing

```
pip install .
```

## Examples

```python
from binkit.hosting import RepositoryHost

host = RepositoryHost.guess_git_hosting_services("https://github.com/owner/tool")
for template in host.default_pkg_url_templates():
    print(template)
```

```python
from binkit.context import Context
from binkit.fetch_data import Data

data = Data("tool", "1.2.3", "https://github.com/owner/tool")
ctx = Context.from_data_with_repo(
    data, "x86_64-unknown-linux-gnu", {}, ".tgz", data.repo, None
)
print(ctx.render_url("{ repo }/releases/download/v{ version }/{ name }-{ target }.{ archive-format }"))
```

```python
from pathlib import Path
from binkit.crates_manifests import Manifests

with Manifests.open_exclusive(Path.home() / ".cargo") as manifests:
    print(manifests.installed_crates())
```

## Running the tests

```
pip install .[test]
pytest
```