"""Tests for the folder selection tree."""
import pytest

from shoebox.services.folder_tree import ROOT, FolderNode, FolderTree

from fixtures import touch


@pytest.fixture
def tree(source_dir):
    # source/
    #   a.jpg
    #   2020/            (1 file)
    #     Beach/         (2 files)
    #     Empty/
    #   Misc/            (1 file, 1 ignored)
    #   .hidden/         (skipped)
    #   Old.photoslibrary/ (skipped)
    touch(source_dir / "a.jpg")
    touch(source_dir / "2020" / "x.mov")
    touch(source_dir / "2020" / "Beach" / "b1.jpg")
    touch(source_dir / "2020" / "Beach" / "b2.heic")
    (source_dir / "2020" / "Empty").mkdir()
    touch(source_dir / "Misc" / "m.png")
    touch(source_dir / "Misc" / "notes.txt")
    touch(source_dir / ".hidden" / "h.jpg")
    touch(source_dir / "Old.photoslibrary" / "p.jpg")
    return FolderTree.build(source_dir)


def names(tree, indexes):
    return [tree[i].name for i in indexes]


class TestBuild:
    def test_structure_and_order(self, tree, source_dir):
        assert tree.root.path == source_dir
        assert len(tree) == 5
        assert names(tree, tree.flatten_all()) == ["2020", "Beach", "Empty", "Misc"]

    def test_counts(self, tree, source_dir):
        assert tree.root.direct_file_count == 1
        assert tree.root.recursive_file_count == 5

        year = tree[tree.index_of(source_dir / "2020")]
        assert year.direct_file_count == 1
        assert year.recursive_file_count == 3
        assert year.depth == 1
        assert year.has_children

        misc = tree[tree.index_of(source_dir / "Misc")]
        assert misc.direct_file_count == 1
        assert not misc.has_children

    def test_hidden_and_packages_can_be_included(self, source_dir, tree):
        full = FolderTree.build(source_dir, skip_hidden=False, skip_packages=False)
        assert {".hidden", "Old.photoslibrary"} <= set(names(full, full.flatten_all()))
        assert full.root.recursive_file_count == 7

    def test_index_of_unknown_path(self, tree, tmp_path):
        assert tree.index_of(tmp_path / "nowhere") is None

    def test_needs_a_root(self):
        with pytest.raises(ValueError):
            FolderTree([])


class TestSelection:
    def test_all_selected_initially(self, tree, source_dir):
        assert tree.all_selected
        assert tree.count_selected_files() == 5
        assert tree.selected_paths() == {
            source_dir,
            source_dir / "2020",
            source_dir / "2020" / "Beach",
            source_dir / "Misc",
        }

    def test_deselect_propagates_to_descendants(self, tree, source_dir):
        index = tree.index_of(source_dir / "2020")
        tree.set_selected(index, False)

        assert not tree[tree.index_of(source_dir / "2020" / "Beach")].selected
        assert not tree[tree.index_of(source_dir / "2020" / "Empty")].selected
        assert tree[tree.index_of(source_dir / "Misc")].selected
        assert not tree.all_selected
        assert tree.count_selected_files() == 2
        assert tree.selected_paths() == {source_dir, source_dir / "Misc"}

    def test_reselect_child(self, tree, source_dir):
        tree.set_selected(ROOT, False)
        tree.set_selected(tree.index_of(source_dir / "2020" / "Beach"), True)

        assert tree.selected_paths() == {source_dir / "2020" / "Beach"}
        assert tree.count_selected_files() == 2


class TestVisibility:
    def test_collapsed_node_hides_children(self, tree, source_dir):
        tree.set_expanded(tree.index_of(source_dir / "2020"), False)
        assert names(tree, tree.flatten_visible()) == ["2020", "Misc"]
        # collapsing does not remove anything from the full listing
        assert len(tree.flatten_all()) == 4

    def test_recursive_expand(self, tree, source_dir):
        year = tree.index_of(source_dir / "2020")
        tree.set_expanded(year, False, recursive=True)
        assert not tree[tree.index_of(source_dir / "2020" / "Beach")].expanded

        tree.set_expanded(year, True)
        assert names(tree, tree.flatten_visible()) == ["2020", "Beach", "Empty", "Misc"]

    def test_descendants_preorder(self):
        nodes = [
            FolderNode(path=None, name="root", depth=0, children=[1, 3]),
            FolderNode(path=None, name="a", depth=1, parent=0, children=[2]),
            FolderNode(path=None, name="a1", depth=2, parent=1),
            FolderNode(path=None, name="b", depth=1, parent=0),
        ]
        tree = FolderTree(nodes)
        assert list(tree.descendants(ROOT)) == [0, 1, 2, 3]
        assert list(tree.descendants(1, include_self=False)) == [2]
