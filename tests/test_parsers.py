"""
Output formats here are pinned samples of each manager's list/search output.
A manager release that changes its format should show up as a failure here.
"""

from collections.abc import Iterator

import pytest

from polypm.managers import Manager
from polypm.models import PackageRecord as P
from polypm.parsers import parse_list, parse_search

BREW_LIST = """\
git 2.42.0 2.43.0
jq 1.7.1
  malformed line with spaces first
wget 1.21.4
"""

BREW_SEARCH = """\
==> Formulae
python@3.12
python-launcher
!!!not-a-package

==> Casks
python-shell
"""

CHOCO_LIST = """\
chocolatey|2.2.2
git|2.43.0
no separator here
7zip|23.1.0
"""

APT_LIST = """\
Listing... Done
bash/jammy,now 5.1-6ubuntu1 amd64 [installed]
curl/jammy-updates,jammy-security,now 7.81.0-1ubuntu1.15 amd64 [installed]
broken/
"""

APT_SEARCH = """\
Sorting... Done
Full Text Search... Done
ripgrep/jammy 13.0.0-2ubuntu0.1 amd64
  Recursively searches directories for a regex pattern

rgxg/jammy 0.1.2-5 amd64
  GNU/Linux regex generator
"""

DNF_LIST = """\
Installed Packages
bash.x86_64                     5.2.15-3.fc38              @anaconda
a-very-long-package-name-that-wraps.noarch
                                1.0-1.fc38                 @updates
vim-enhanced.x86_64             2:9.0.2120-1.fc38          @updates
garbage
"""

DNF_SEARCH = """\
Last metadata expiration check: 0:12:01 ago on Mon 01 Jan 2024.
======================== Name Exactly Matched: ripgrep =========================
ripgrep.x86_64 : Line oriented search tool using Rust's regex library
===================== Name & Summary Matched: ripgrep ======================
ripgrep-doc.noarch : Documentation for ripgrep
this line has no separator
"""

ZYPPER_XML = """\
<?xml version='1.0'?>
<stream>
<search-result version="0.0">
<solvable-list>
<solvable status="installed" name="vim" summary="Vi IMproved" kind="package" edition="9.0.2103-1.1"/>
<solvable status="not-installed" name="vim-data" summary="Data files" kind="package"/>
<solvable status="not-installed" name="devel_basis" summary="Base Development" kind="pattern"/>
<solvable status="not-installed" summary="no name" kind="package"/>
</solvable-list>
</search-result>
</stream>
"""

FLATPAK_LIST = (
    "Blender\torg.blender.Blender\t4.1\tstable\tsystem\n"
    "GIMP\torg.gimp.GIMP\t2.10.36\tstable\n"
    "just one column\n"
)

FLATPAK_SEARCH = (
    "Flatpak Developer Demo\tFlatpak Developer Demo\torg.flatpak.qtdemo\t1.1.3\tstable\tflathub\n"
    "Blender\tFree and open source 3D creation suite\torg.blender.Blender\t4.1\tstable\tfedora,flathub\n"
    "Inkscape\tVector Graphics Editor\torg.inkscape.Inkscape\t1.3.2\tstable\tfedora,flathub\n"
)


CASES = [
    (parse_list, Manager.BREW, BREW_LIST, [P("git", "2.43.0"), P("jq", "1.7.1"), P("wget", "1.21.4")]),
    (parse_search, Manager.BREW, BREW_SEARCH, [P("python", "3.12"), P("python-launcher"), P("python-shell")]),
    (parse_list, Manager.CHOCO, CHOCO_LIST, [P("chocolatey", "2.2.2"), P("git", "2.43.0"), P("7zip", "23.1.0")]),
    (parse_search, Manager.CHOCO, CHOCO_LIST, [P("chocolatey", "2.2.2"), P("git", "2.43.0"), P("7zip", "23.1.0")]),
    (parse_list, Manager.APT, APT_LIST, [P("bash", "5.1-6ubuntu1"), P("curl", "7.81.0-1ubuntu1.15")]),
    (parse_search, Manager.APT, APT_SEARCH, [P("ripgrep", "13.0.0-2ubuntu0.1"), P("rgxg", "0.1.2-5")]),
    (
        parse_list,
        Manager.DNF,
        DNF_LIST,
        [
            P("bash.x86_64", "5.2.15-3.fc38"),
            P("a-very-long-package-name-that-wraps.noarch", "1.0-1.fc38"),
            P("vim-enhanced.x86_64", "2:9.0.2120-1.fc38"),
        ],
    ),
    (parse_search, Manager.DNF, DNF_SEARCH, [P("ripgrep.x86_64"), P("ripgrep-doc.noarch")]),
    (parse_list, Manager.YUM, DNF_LIST, [
        P("bash.x86_64", "5.2.15-3.fc38"),
        P("a-very-long-package-name-that-wraps.noarch", "1.0-1.fc38"),
        P("vim-enhanced.x86_64", "2:9.0.2120-1.fc38"),
    ]),
    (parse_list, Manager.ZYPPER, ZYPPER_XML, [P("vim", "9.0.2103-1.1"), P("vim-data")]),
    (parse_search, Manager.ZYPPER, ZYPPER_XML, [P("vim", "9.0.2103-1.1"), P("vim-data")]),
    (parse_list, Manager.FLATPAK, FLATPAK_LIST, [P("org.blender.Blender", "4.1"), P("org.gimp.GIMP", "2.10.36")]),
    (
        parse_search,
        Manager.FLATPAK,
        FLATPAK_SEARCH,
        [P("org.flatpak.qtdemo", "1.1.3"), P("org.blender.Blender", "4.1"), P("org.inkscape.Inkscape", "1.3.2")],
    ),
]


@pytest.mark.parametrize(("parse", "manager", "raw", "expected"), CASES)
def test_pinned_formats_skip_malformed_lines(parse, manager, raw, expected):
    assert list(parse(manager, raw)) == expected


@pytest.mark.parametrize(("parse", "manager", "raw", "expected"), CASES)
def test_parsing_is_idempotent(parse, manager, raw, expected):
    assert list(parse(manager, raw)) == list(parse(manager, raw))


def test_results_are_one_shot_iterators():
    records = parse_list(Manager.BREW, BREW_LIST)
    assert isinstance(records, Iterator)
    assert len(list(records)) == 3
    assert list(records) == []


@pytest.mark.parametrize("manager", list(Manager))
def test_empty_output(manager):
    assert list(parse_list(manager, "")) == []
    assert list(parse_search(manager, "")) == []


def test_invalid_zypper_xml_yields_nothing():
    assert list(parse_list(Manager.ZYPPER, "<stream><search-result>")) == []


def test_manager_dispatches_to_parsers():
    assert list(Manager.CHOCO.parse_list("git|2.43.0\n")) == [P("git", "2.43.0")]
    assert list(Manager.BREW.parse_search("wget\n")) == [P("wget")]
