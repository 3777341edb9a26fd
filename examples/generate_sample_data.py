"""
Generate sample XRD data for testing and demonstration
"""

import numpy as np
import os

XRDML_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<xrdMeasurements xmlns="http://www.xrdml.com/XRDMeasurement/1.5" status="Completed">
  <sample type="To be analyzed">
    <id>{sample}</id>
    <name>{sample}</name>
  </sample>
  <xrdMeasurement measurementType="Scan" status="Completed">
    <usedWavelength intended="K-Alpha 1">
      <kAlpha1 unit="Angstrom">1.5405980</kAlpha1>
    </usedWavelength>
    <scan scanAxis="Gonio" status="Completed">
      <dataPoints>
        <positions axis="2Theta" unit="deg">
          <startPosition>{start:.4f}</startPosition>
          <endPosition>{end:.4f}</endPosition>
        </positions>
        <intensities unit="counts">{intensities}</intensities>
      </dataPoints>
    </scan>
  </xrdMeasurement>
</xrdMeasurements>
"""


def generate_peak(two_theta: np.ndarray, center: float, intensity: float, width: float) -> np.ndarray:
    """Generate a Gaussian-like XRD peak"""
    return intensity * np.exp(-((two_theta - center) ** 2) / (2 * width ** 2))


def generate_xrd_pattern(two_theta: np.ndarray, pattern_type: str = 'AD') -> np.ndarray:
    """
    Generate synthetic XRD pattern

    Pattern types:
    - 'AD': As-deposited (broad, weak peaks)
    - 'HT': Heat-treated (sharper peaks)
    - 'GL': Glassy (amorphous hump)
    """
    intensity = np.zeros_like(two_theta)

    if pattern_type == 'AD':
        peaks = [(20.5, 400, 0.6), (30.2, 300, 0.7), (35.5, 200, 0.8)]
    elif pattern_type == 'HT':
        peaks = [(20.5, 1500, 0.2), (30.2, 1100, 0.25), (35.5, 800, 0.3),
                 (42.0, 500, 0.25), (50.5, 400, 0.3)]
    else:
        peaks = [(27.0, 250, 6.0)]

    for center, amp, width in peaks:
        intensity += generate_peak(two_theta, center, amp, width)

    return intensity


def add_noise(intensity: np.ndarray, noise_level: float = 0.05) -> np.ndarray:
    """Add Gaussian noise to intensity"""
    noise = np.random.normal(0, noise_level * np.max(intensity), len(intensity))
    return np.maximum(intensity + noise, 0)


def add_background(intensity: np.ndarray, two_theta: np.ndarray,
                   bg_level: float = 50, slope: float = -0.5) -> np.ndarray:
    """Add sloped background"""
    background = bg_level + slope * (two_theta - two_theta[0])
    return intensity + np.maximum(background, 0)


def write_xrdml(filepath: str, sample: str, two_theta: np.ndarray, intensity: np.ndarray):
    """Write a minimal XRDML file with start/end positions"""
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(XRDML_TEMPLATE.format(
            sample=sample,
            start=two_theta[0],
            end=two_theta[-1],
            intensities=' '.join(f"{y:.0f}" for y in intensity)
        ))


def generate_sample_files(output_dir: str, temperatures=(250, 400)):
    """
    Generate sample XRD files for testing

    Creates one XRDML file per temperature and treatment, plus one
    two-column file on a coarser 2theta grid.
    """
    os.makedirs(output_dir, exist_ok=True)

    two_theta = np.round(np.linspace(10, 60, 2501), 4)
    coarse_theta = np.round(np.linspace(10, 60, 1251), 4)

    for temperature in temperatures:
        for treatment in ('AD', 'HT', 'GL'):
            sample = f"J_DI_{temperature}_{treatment}_"
            intensity = generate_xrd_pattern(two_theta, treatment)
            intensity = add_background(add_noise(intensity), two_theta)

            filename = f"2024_scan_{sample}.xrdml"
            write_xrdml(os.path.join(output_dir, filename), sample, two_theta, intensity)
            print(f"Generated: {filename}")

    intensity = add_background(add_noise(generate_xrd_pattern(coarse_theta, 'HT')), coarse_theta)
    filename = "2024_scan_J_REF_HT_.xy"
    with open(os.path.join(output_dir, filename), 'w') as f:
        f.write("# 2theta    Intensity\n")
        for x, y in zip(coarse_theta, intensity):
            f.write(f"{x:.4f}\t{y:.1f}\n")
    print(f"Generated: {filename}")

    print(f"\nGenerated {len(temperatures) * 3 + 1} sample files in {output_dir}")


if __name__ == "__main__":
    # Generate sample data in examples directory
    script_dir = os.path.dirname(os.path.abspath(__file__))
    output_dir = os.path.join(script_dir, "sample_data")
    generate_sample_files(output_dir)
