"""
Collector Scan - Command Line Tests
"""
import json
from unittest.mock import patch

from diagnostics import DiagnosticsSink
from errors import EngineFailure


class TestMain:
    """Tests for scan_card.main"""

    def test_success_prints_json(self, capsys):
        import scan_card

        sink = DiagnosticsSink()
        sink.record_step(1, 'Quadrant Crop', 'SUCCESS')
        with patch('scan_card.CardRecognitionEngine') as mock_engine:
            mock_engine.return_value.recognize_card.return_value = {
                'success': True,
                'card': None,
                'set_code': 'FDN',
                'collector_number': '0125',
                'diagnostics': sink,
            }
            code = scan_card.main(['photo.jpg', '--no-lookup'])

        assert code == 0
        mock_engine.return_value.recognize_card.assert_called_once_with('photo.jpg', lookup=False)
        output = json.loads(capsys.readouterr().out)
        assert output['set_code'] == 'FDN'
        assert output['steps'][0]['name'] == 'Quadrant Crop'
        assert 'diagnostics' not in output

    def test_unsuccessful_scan_exits_one(self, capsys):
        import scan_card

        with patch('scan_card.CardRecognitionEngine') as mock_engine:
            mock_engine.return_value.recognize_card.return_value = {
                'success': False, 'card': None, 'error': 'parse_failure'
            }
            code = scan_card.main(['photo.jpg'])

        assert code == 1
        mock_engine.return_value.recognize_card.assert_called_once_with('photo.jpg', lookup=True)
        assert json.loads(capsys.readouterr().out)['error'] == 'parse_failure'

    def test_engine_failure_exits_two(self, capsys):
        import scan_card

        with patch('scan_card.CardRecognitionEngine') as mock_engine:
            mock_engine.return_value.recognize_card.side_effect = EngineFailure('tesseract failed')
            code = scan_card.main(['photo.jpg'])

        assert code == 2
        output = json.loads(capsys.readouterr().out)
        assert output['error'] == 'EngineFailure'
        assert output['message'] == 'tesseract failed'

    def test_debug_flags(self, tmp_path):
        import scan_card

        with patch('scan_card.CardRecognitionEngine') as mock_engine:
            mock_engine.return_value.recognize_card.return_value = {'success': True, 'card': None}
            scan_card.main(['photo.jpg', '--save-debug', '--debug-dir', str(tmp_path)])

        kwargs = mock_engine.call_args[1]
        assert kwargs['save_debug_images'] is True
        assert kwargs['debug_dir'] == str(tmp_path)
