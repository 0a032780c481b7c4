# releasetrack

`track` is a command-line tool that follows the releases of GitHub
repositories. It downloads the release asset that fits your operating system
and CPU architecture, unpacks it, and links the executable into place.

## Installation

```
pip install releasetrack
```

This installs the `track` command.

## Commands

### add

Start tracking a repository. An initial install runs straight away:

```
track add BurntSushi/ripgrep
track add jesseduffield/lazygit --name lg
```

Options:

- `--prerelease` include pre-releases when checking for updates
- `--token` GitHub token for API requests (also exported as `GITHUB_TOKEN`)
- `--filter` regular expression an asset name must match (for example `.*musl.*`)
- `--name` name to install the executable under

### list

Show tracked repositories with their number, current version, pre-release
setting and filter. Aliases `ls` and `status`:

```
track list
```

The numbers in this table are what the other commands take.

### update

Update every tracked repository, or only those given by number:

```
track update
track update 2
track update --force
```

A repository is skipped when its latest release is already installed and its
executable is in place, unless `--force` (`-f`) is given. Afterwards `track`
checks for a newer release of itself.

### releases

Show the installed version history stored in the configuration and the most
recent releases on GitHub (default 10):

```
track releases 1 --limit 5
```

### rollback

Install a specific release, by tag, of the repository at the given number:

```
track rollback 1 v1.2.3
```

### set

Change a repository setting, by list number or by `owner/repo`, or toggle the
global debug output:

```
track set 1 prerelease true
track set BurntSushi/ripgrep MatcherMode relaxed
track set 2 AssetFilter ".*musl.*"
track set 1 AssetPriority x86_64,amd64
track set 2 PreferredArchives .zip,.tar.gz
track set debug true
```

Supported fields (case-insensitive): `prerelease`, `MatcherMode`,
`AssetFilter`, `AssetExclude`, `InstallName`, `AssetPriority`,
`PreferredArchives`, `FallbackArch`, `FallbackOS`, and the global `debug`.
List fields take comma-separated values.

### remove

Stop tracking a repository (alias `rm`). Downloaded files stay on disk:

```
track remove 1
```

### tidy

Delete every version folder except the current one for each tracked
repository:

```
track tidy
```

### config

Open the JSON configuration in an editor (`$EDITOR`, else `vi`; Notepad on
Windows). Alias `cfg`:

```
track config
```

## How an asset is chosen

Checksums, signatures, `.txt` files and source archives are never picked.
`AssetExclude` removes matching names and `AssetFilter` keeps only matching
ones. In the default `strict` mode a name must mention both your operating
system and your architecture. Among the remaining assets, one matching
`AssetPriority` (and `PreferredArchives`, if set) wins, then one with a
preferred archive suffix, then the first. In `relaxed` mode, when nothing is
left, the first asset matching `FallbackArch` and `FallbackOS` is used.

The configuration's global section can supply defaults:
`default_asset_priority`, `preferred_archive_types`, `default_asset_filter`
and `matcher_mode`. Setting `debug` prints why each asset was skipped.

Archives in `.zip`, `.tar.gz` and `.tgz` form are unpacked. Inside, an
executable named like the install name or the repository wins; otherwise the
first executable found is used.

## Where files live

`config.json` and downloaded releases are kept in a `track` directory under
your user cache directory (`$XDG_CACHE_HOME` or `~/.cache` on Linux,
`~/Library/Caches` on macOS); the configuration is in `%LOCALAPPDATA%\track`
on Windows. Each release is unpacked into
`<data_dir>/<repo>/general/<tag>`. Executables are linked into `latest/`
inside the data directory and, on Linux and macOS, into `~/.local/bin`. On
Windows a `.cmd` shim is written to `latest/` instead.

Set `GITHUB_TOKEN` in the environment to authenticate API requests.

## Using it as a library

`releasetrack.client.GitHubClient` fetches releases,
`releasetrack.matcher.find_compatible_asset` picks an asset for a given OS and
architecture, and `releasetrack.manager.Manager` installs and updates tracked
repositories over a `releasetrack.config.Config`.

## What it does not do

- There is no command to search GitHub for repositories.
- `remove` does not delete installed files or links; `tidy` only removes old
  version folders.
- Installed versions are not appended to `version_history`; `releases` shows
  that list only as far as it is filled in by hand.
- `backup_count`, `excluded_patterns`, `default_prerelease` and
  `default_install_name` are kept in the configuration but not acted on.