from kmpedit.cli import main
from kmpedit.parsers import Checkpoint, KmpFile, PathGroup


def test_info(tmp_path, sample_bytes, capsys):
    path = tmp_path / "course.kmp"
    path.write_bytes(sample_bytes)

    assert main(["info", str(path)]) == 0
    assert "0 error(s)" in capsys.readouterr().out


def test_roundtrip_through_course(tmp_path, sample_bytes):
    source = tmp_path / "course.kmp"
    target = tmp_path / "out.kmp"
    source.write_bytes(sample_bytes)

    assert main(["roundtrip", str(source), str(target), "--course"]) == 0
    assert target.read_bytes() == sample_bytes


def test_roundtrip_raw_codec(tmp_path, sample_bytes):
    source = tmp_path / "course.kmp"
    target = tmp_path / "out.kmp"
    source.write_bytes(sample_bytes)

    assert main(["roundtrip", str(source), str(target)]) == 0
    assert KmpFile.read(target.read_bytes()).write() == sample_bytes


def test_invalid_file_fails(tmp_path):
    path = tmp_path / "broken.kmp"
    path.write_bytes(b"JUNK")

    assert main(["info", str(path)]) == 1


def test_missing_file_fails(tmp_path):
    assert main(["kcl", str(tmp_path / "missing.kcl")]) == 1


def test_roundtrip_reports_unsavable_course(tmp_path):
    kmp = KmpFile()
    kmp.checkpoints.entries = [Checkpoint((float(i), 0.0), (float(i), 10.0)) for i in range(300)]
    kmp.checkpoint_groups.entries = [
        PathGroup.from_links(0, 200, [], []),
        PathGroup.from_links(200, 100, [], []),
    ]
    source = tmp_path / "long.kmp"
    kmp.to_file(source)

    assert main(["roundtrip", str(source), str(tmp_path / "out.kmp"), "--course"]) == 1
    assert not (tmp_path / "out.kmp").exists()
