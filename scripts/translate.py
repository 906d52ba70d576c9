import polib

PO_FILE = "locales/de/LC_MESSAGES/batsim.po"
MO_FILE = "locales/de/LC_MESSAGES/batsim.mo"

translations = {
    "Home battery simulator for meter data.": "Heimspeicher-Simulator für Zählerdaten.",
    "List of single data files to simulate.": "Liste einzelner Datendateien für die Simulation.",
    "Path to the directory with .csv files.": "Pfad zum Verzeichnis mit .csv-Dateien.",
    "Name of the date/time column.": "Name der Datum/Zeit-Spalte.",
    "Name of the consumption column.": "Name der Verbrauchsspalte.",
    "Name of the production column.": "Name der Produktionsspalte.",
    "Name of the net meter column (default: first column containing 'meter').": "Name der Netzzähler-Spalte (Standard: erste Spalte, die 'meter' enthält).",
    "Unit of the power columns in the CSV (default: kW).": "Einheit der Leistungsspalten in der CSV (Standard: kW).",
    "Start date of the simulation (format YYYY-MM-DD).": "Startdatum der Simulation (Format JJJJ-MM-TT).",
    "End date of the simulation (format YYYY-MM-DD).": "Enddatum der Simulation (Format JJJJ-MM-TT).",
    "Battery capacity in kWh (e.g., 13.8).": "Speicherkapazität in kWh (z.B. 13.8).",
    "Maximum charge rate in kW.": "Maximale Ladeleistung in kW.",
    "Maximum discharge rate in kW.": "Maximale Entladeleistung in kW.",
    "Initial state of charge in percent.": "Anfänglicher Ladezustand in Prozent.",
    "Battery cost (informational).": "Kosten des Speichers (informativ).",
    "Price per kWh imported from the grid.": "Preis pro kWh Netzbezug.",
    "Price per kWh exported to the grid.": "Vergütung pro kWh Netzeinspeisung.",
    "Path to the CSV file with per-interval simulation results.": "Pfad zur CSV-Datei mit den Simulationsergebnissen pro Intervall.",
    "Path to the CSV file with aggregated daily results.": "Pfad zur CSV-Datei mit den täglich aggregierten Ergebnissen.",
    "Runs the simulation for each of the given capacities (kWh) and compares the costs.": "Simuliert jede angegebene Kapazität (kWh) und vergleicht die Kosten.",
    "Enables verbose mode for the capacity comparison.": "Aktiviert den ausführlichen Modus für den Kapazitätsvergleich.",
    "No .csv files found for processing in: {}": "Keine .csv-Dateien zur Verarbeitung gefunden in: {}",
    "Found {} files to process:": "{} Dateien zur Verarbeitung gefunden:",
    "\nTotal loaded {} records.": "\nInsgesamt {} Datensätze geladen.",
    "No data for the simulation.": "Keine Daten für die Simulation.",
    "\nError: {}": "\nFehler: {}",
}

po = polib.pofile(PO_FILE)

print(f"Translating file: {PO_FILE}")
untranslated = []
for entry in po:
    if not entry.msgstr and entry.msgid in translations:
        entry.msgstr = translations[entry.msgid]
        print(f"Translated: '{entry.msgid}' -> '{entry.msgstr}'")
    elif not entry.msgstr:
        untranslated.append(entry.msgid)

if untranslated:
    print("\nWarning: The following strings are not translated:")
    for msgid in untranslated:
        print(f"  - {msgid}")

po.save()
po.save_as_mofile(MO_FILE)
print(f"\nTranslation complete, compiled to {MO_FILE}.")
