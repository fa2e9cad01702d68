"""
Tests for livechord.features.peaks and the strict peak picker behind it.
"""

import numpy as np
import pytest

from livechord._internal.peak_finding import find_peaks, find_strict_maxima
from livechord.features.peaks import extract_fundamentals, to_decibels

from conftest import C_MAJOR_FREQS, N_BINS, SAMPLE_RATE, bin_width, make_spectrum


class TestFindStrictMaxima:
    def test_interior_peaks_only(self) -> None:
        x = np.array([5.0, 1.0, 3.0, 1.0, 4.0])
        assert find_strict_maxima(x).tolist() == [False, False, True, False, False]

    def test_plateau_is_not_a_peak(self) -> None:
        x = np.array([0.0, 2.0, 2.0, 0.0])
        assert not find_strict_maxima(x).any()

    def test_short_input(self) -> None:
        assert find_strict_maxima(np.array([1.0, 2.0])).tolist() == [False, False]


class TestFindPeaks:
    def test_height_is_strict(self) -> None:
        x = np.array([-60.0, -40.0, -60.0, -39.0, -60.0])
        indices, props = find_peaks(x, height=-40.0)
        assert indices.tolist() == [3]
        assert props["peak_heights"].tolist() == [-39.0]

    def test_non_finite_bins_are_ignored(self) -> None:
        x = np.array([-np.inf, np.nan, -np.inf, -20.0, -np.inf])
        indices, _ = find_peaks(x, height=-40.0)
        assert indices.tolist() == [3]

    def test_distance_keeps_the_higher_peak(self) -> None:
        x = np.array([0.0, 5.0, 0.0, 7.0, 0.0, 0.0, 0.0, 6.0, 0.0])
        indices, _ = find_peaks(x, distance=3)
        assert indices.tolist() == [3, 7]

    def test_rejects_2d_input(self) -> None:
        with pytest.raises(ValueError, match="1-D"):
            find_peaks(np.zeros((2, 2)))


class TestExtractFundamentals:
    def test_c_major_peaks_found(self) -> None:
        spectrum = make_spectrum(C_MAJOR_FREQS)
        freqs = [f.frequency for f in extract_fundamentals(spectrum, SAMPLE_RATE)]
        width = bin_width()
        assert len(freqs) == 3
        for expected in C_MAJOR_FREQS:
            assert any(abs(f - expected) <= width for f in freqs)

    def test_frequency_is_bin_times_width(self) -> None:
        spectrum = np.full(N_BINS, -100.0)
        spectrum[100] = -5.0
        (fundamental,) = extract_fundamentals(spectrum, SAMPLE_RATE)
        assert fundamental.frequency == pytest.approx(100 * SAMPLE_RATE / (2 * N_BINS))
        assert fundamental.magnitude == -5.0

    @pytest.mark.parametrize("freq", [30.0, 79.0, 2010.0, 2500.0, 10000.0])
    def test_out_of_range_frequencies_are_excluded(self, freq: float) -> None:
        # louder than anything in range, still excluded
        spectrum = make_spectrum([(freq, 0.0), (440.0, -30.0)])
        freqs = [f.frequency for f in extract_fundamentals(spectrum, SAMPLE_RATE)]
        assert len(freqs) == 1
        assert 80.0 <= freqs[0] <= 2000.0

    def test_sorted_by_descending_magnitude(self) -> None:
        spectrum = make_spectrum([(200.0, -30.0), (300.0, -10.0), (400.0, -20.0)])
        mags = [f.magnitude for f in extract_fundamentals(spectrum, SAMPLE_RATE)]
        assert mags == [-10.0, -20.0, -30.0]

    def test_truncated_to_six(self) -> None:
        peaks = [(100.0 + 150.0 * i, -35.0 + i) for i in range(9)]
        result = extract_fundamentals(make_spectrum(peaks), SAMPLE_RATE)
        assert len(result) == 6
        assert [f.magnitude for f in result] == [-27.0, -28.0, -29.0, -30.0, -31.0, -32.0]

    def test_max_peaks_is_configurable(self) -> None:
        result = extract_fundamentals(make_spectrum(C_MAJOR_FREQS), SAMPLE_RATE, max_peaks=2)
        assert len(result) == 2

    def test_silence_yields_empty_list(self) -> None:
        assert extract_fundamentals(np.full(N_BINS, -90.0), SAMPLE_RATE) == []

    def test_all_below_floor_yields_empty_list(self) -> None:
        spectrum = make_spectrum([(261.63, -41.0), (329.63, -40.0)])
        assert extract_fundamentals(spectrum, SAMPLE_RATE) == []

    def test_analyser_silence_of_minus_infinity(self) -> None:
        assert extract_fundamentals([-np.inf] * 1024, SAMPLE_RATE) == []

    def test_tiny_spectrum(self) -> None:
        assert extract_fundamentals([0.0, 1.0], SAMPLE_RATE) == []

    def test_linear_spectrum_is_converted(self) -> None:
        linear = np.full(N_BINS, 1e-6)
        idx = int(round(440.0 / bin_width()))
        linear[idx] = 0.1  # -20 dB
        (fundamental,) = extract_fundamentals(linear, SAMPLE_RATE, spectrum_in_db=False)
        assert fundamental.magnitude == pytest.approx(-20.0)

    def test_interpolation_refines_frequency(self) -> None:
        spectrum = np.full(N_BINS, -100.0)
        spectrum[99:102] = [-20.0, -10.0, -14.0]
        (plain,) = extract_fundamentals(spectrum, SAMPLE_RATE)
        (refined,) = extract_fundamentals(spectrum, SAMPLE_RATE, interpolate=True)
        assert refined.frequency > plain.frequency


class TestToDecibels:
    def test_unit_magnitude_is_zero_db(self) -> None:
        assert to_decibels(np.array([1.0, 0.1]))[0] == pytest.approx(0.0)

    def test_zero_is_clamped(self) -> None:
        assert np.isfinite(to_decibels(np.array([0.0]))).all()
