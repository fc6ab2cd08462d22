import pytest

from minuta.exceptions import AudioFileNotFoundError, UnsupportedAudioFileError
from minuta.handlers import AudioImporter


def test_import_records_file_once(store, tmp_path):
    path = tmp_path / "interview.MP3"
    path.write_bytes(b"\x00" * 321)
    importer = AudioImporter(store)

    audio_file, created = importer.import_file(path)
    again, created_again = importer.import_file(str(path))

    assert created and not created_again
    assert again.id == audio_file.id
    assert audio_file.file_name == "interview.MP3"
    assert audio_file.file_path == str(path.resolve())
    assert audio_file.file_size == 321
    assert audio_file.duration is None


def test_import_rejects_unsupported_and_missing_files(store, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hi")
    importer = AudioImporter(store)

    with pytest.raises(UnsupportedAudioFileError):
        importer.import_file(notes)
    with pytest.raises(AudioFileNotFoundError):
        importer.import_file(tmp_path / "missing.wav")

    assert store.list_audio_files() == []


def test_equivalent_paths_share_one_record(store, tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    (real / "x.mp3").write_bytes(b"\x00" * 64)
    link = tmp_path / "link"
    link.symlink_to(real, target_is_directory=True)
    importer = AudioImporter(store)

    audio_file, created = importer.import_file(real / "x.mp3")
    dotted, dotted_created = importer.import_file(real / ".." / "real" / "x.mp3")
    linked, linked_created = importer.import_file(link / "x.mp3")

    assert created and not dotted_created and not linked_created
    assert dotted.id == linked.id == audio_file.id
    assert [a.file_path for a in store.list_audio_files()] == [
        str((real / "x.mp3").resolve())
    ]
