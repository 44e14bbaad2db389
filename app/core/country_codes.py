"""Référentiel des indicatifs téléphoniques par pays.

Chaque entrée: (indicatif, pays, longueur du numéro national, région).
Chargé dans la table country_phone_config au démarrage.
"""

COUNTRY_PHONE_CODES: list[tuple[str, str, int, str]] = [
    # AFRIQUE
    ("20", "Egypt", 10, "Africa"),
    ("212", "Morocco", 9, "Africa"),
    ("213", "Algeria", 9, "Africa"),
    ("216", "Tunisia", 8, "Africa"),
    ("218", "Libya", 9, "Africa"),
    ("221", "Senegal", 9, "Africa"),
    ("222", "Mauritania", 8, "Africa"),
    ("223", "Mali", 8, "Africa"),
    ("224", "Guinea", 9, "Africa"),
    ("225", "Ivory Coast", 8, "Africa"),
    ("226", "Burkina Faso", 8, "Africa"),
    ("227", "Niger", 8, "Africa"),
    ("228", "Togo", 8, "Africa"),
    ("229", "Benin", 8, "Africa"),
    ("230", "Mauritius", 7, "Africa"),
    ("231", "Liberia", 8, "Africa"),
    ("232", "Sierra Leone", 8, "Africa"),
    ("233", "Ghana", 9, "Africa"),
    ("234", "Nigeria", 10, "Africa"),
    ("235", "Chad", 8, "Africa"),
    ("236", "Central African Republic", 8, "Africa"),
    ("237", "Cameroon", 9, "Africa"),
    ("238", "Cape Verde", 7, "Africa"),
    ("239", "Sao Tome & Principe", 7, "Africa"),
    ("240", "Equatorial Guinea", 9, "Africa"),
    ("241", "Gabon", 8, "Africa"),
    ("242", "Republic of Congo", 9, "Africa"),
    ("243", "DR Congo", 9, "Africa"),
    ("244", "Angola", 9, "Africa"),
    ("245", "Guinea-Bissau", 7, "Africa"),
    ("246", "BIOT (Diego Garcia)", 7, "Africa"),
    ("248", "Seychelles", 7, "Africa"),
    ("249", "Sudan", 9, "Africa"),
    ("250", "Rwanda", 9, "Africa"),
    ("251", "Ethiopia", 9, "Africa"),
    ("252", "Somalia", 9, "Africa"),
    ("253", "Djibouti", 8, "Africa"),
    ("254", "Kenya", 9, "Africa"),
    ("255", "Tanzania", 9, "Africa"),
    ("256", "Uganda", 9, "Africa"),
    ("257", "Burundi", 8, "Africa"),
    ("258", "Mozambique", 9, "Africa"),
    ("260", "Zambia", 9, "Africa"),
    ("261", "Madagascar", 9, "Africa"),
    ("262", "Réunion / Mayotte", 9, "Africa"),
    ("263", "Zimbabwe", 9, "Africa"),
    ("264", "Namibia", 8, "Africa"),
    ("265", "Malawi", 9, "Africa"),
    ("266", "Lesotho", 8, "Africa"),
    ("267", "Botswana", 8, "Africa"),
    ("268", "Eswatini", 7, "Africa"),
    ("269", "Comoros", 7, "Africa"),
    # EUROPE
    ("30", "Greece", 10, "Europe"),
    ("31", "Netherlands", 9, "Europe"),
    ("32", "Belgium", 9, "Europe"),
    ("33", "France", 9, "Europe"),
    ("34", "Spain", 9, "Europe"),
    ("36", "Hungary", 9, "Europe"),
    ("39", "Italy", 10, "Europe"),
    ("40", "Romania", 9, "Europe"),
    ("41", "Switzerland", 9, "Europe"),
    ("43", "Austria", 10, "Europe"),
    ("44", "United Kingdom", 10, "Europe"),
    ("45", "Denmark", 8, "Europe"),
    ("46", "Sweden", 9, "Europe"),
    ("47", "Norway", 8, "Europe"),
    ("48", "Poland", 9, "Europe"),
    ("49", "Germany", 10, "Europe"),
    ("351", "Portugal", 9, "Europe"),
    ("352", "Luxembourg", 9, "Europe"),
    ("353", "Ireland", 9, "Europe"),
    ("354", "Iceland", 7, "Europe"),
    ("355", "Albania", 9, "Europe"),
    ("356", "Malta", 8, "Europe"),
    ("357", "Cyprus", 8, "Europe"),
    ("358", "Finland", 9, "Europe"),
    ("359", "Bulgaria", 9, "Europe"),
    ("370", "Lithuania", 8, "Europe"),
    ("371", "Latvia", 8, "Europe"),
    ("372", "Estonia", 7, "Europe"),
    ("373", "Moldova", 8, "Europe"),
    ("374", "Armenia", 8, "Europe"),
    ("375", "Belarus", 9, "Europe"),
    ("376", "Andorra", 6, "Europe"),
    ("377", "Monaco", 8, "Europe"),
    ("378", "San Marino", 10, "Europe"),
    ("380", "Ukraine", 9, "Europe"),
    ("381", "Serbia", 9, "Europe"),
    ("382", "Montenegro", 8, "Europe"),
    ("383", "Kosovo", 8, "Europe"),
    ("385", "Croatia", 9, "Europe"),
    ("386", "Slovenia", 8, "Europe"),
    ("387", "Bosnia", 8, "Europe"),
    ("389", "North Macedonia", 8, "Europe"),
    # ASIE / MOYEN-ORIENT
    ("60", "Malaysia", 9, "Asia"),
    ("61", "Australia", 9, "Oceania"),
    ("62", "Indonesia", 10, "Asia"),
    ("63", "Philippines", 10, "Asia"),
    ("64", "New Zealand", 8, "Oceania"),
    ("65", "Singapore", 8, "Asia"),
    ("66", "Thailand", 9, "Asia"),
    ("81", "Japan", 10, "Asia"),
    ("82", "South Korea", 9, "Asia"),
    ("84", "Vietnam", 9, "Asia"),
    ("86", "China", 11, "Asia"),
    ("90", "Turkey", 10, "Asia"),
    ("91", "India", 10, "Asia"),
    ("92", "Pakistan", 10, "Asia"),
    ("93", "Afghanistan", 9, "Asia"),
    ("94", "Sri Lanka", 9, "Asia"),
    ("95", "Myanmar", 9, "Asia"),
    ("98", "Iran", 10, "Asia"),
    ("961", "Lebanon", 8, "Asia"),
    ("962", "Jordan", 8, "Asia"),
    ("963", "Syria", 9, "Asia"),
    ("964", "Iraq", 10, "Asia"),
    ("965", "Kuwait", 8, "Asia"),
    ("966", "Saudi Arabia", 9, "Asia"),
    ("967", "Yemen", 9, "Asia"),
    ("968", "Oman", 8, "Asia"),
    ("970", "Palestine", 9, "Asia"),
    ("971", "UAE", 9, "Asia"),
    ("972", "Israel", 9, "Asia"),
    ("973", "Bahrain", 8, "Asia"),
    ("974", "Qatar", 8, "Asia"),
    ("975", "Bhutan", 8, "Asia"),
    ("976", "Mongolia", 8, "Asia"),
    ("977", "Nepal", 10, "Asia"),
    ("994", "Azerbaijan", 9, "Asia"),
    ("995", "Georgia", 9, "Asia"),
    ("996", "Kyrgyzstan", 9, "Asia"),
    ("998", "Uzbekistan", 9, "Asia"),
    # AMÉRIQUES
    ("1", "USA / Canada", 10, "Americas"),
    ("52", "Mexico", 10, "Americas"),
    ("53", "Cuba", 8, "Americas"),
    ("54", "Argentina", 10, "Americas"),
    ("55", "Brazil", 10, "Americas"),
    ("56", "Chile", 9, "Americas"),
    ("57", "Colombia", 10, "Americas"),
    ("58", "Venezuela", 10, "Americas"),
    ("501", "Belize", 7, "Americas"),
    ("502", "Guatemala", 8, "Americas"),
    ("503", "El Salvador", 8, "Americas"),
    ("504", "Honduras", 8, "Americas"),
    ("505", "Nicaragua", 8, "Americas"),
    ("506", "Costa Rica", 8, "Americas"),
    ("507", "Panama", 8, "Americas"),
    ("508", "Saint-Pierre & Miquelon", 6, "Americas"),
    ("509", "Haiti", 8, "Americas"),
    ("590", "Guadeloupe / St-Martin", 9, "Americas"),
    ("591", "Bolivia", 8, "Americas"),
    ("592", "Guyana", 7, "Americas"),
    ("593", "Ecuador", 9, "Americas"),
    ("594", "French Guiana", 9, "Americas"),
    ("595", "Paraguay", 9, "Americas"),
    ("596", "Martinique", 9, "Americas"),
    ("597", "Suriname", 7, "Americas"),
    ("598", "Uruguay", 8, "Americas"),
    ("599", "Caribbean Netherlands", 7, "Americas"),
    # OCÉANIE (complément)
    ("670", "East Timor", 7, "Oceania"),
    ("672", "Norfolk Island", 6, "Oceania"),
    ("673", "Brunei", 7, "Oceania"),
    ("674", "Nauru", 7, "Oceania"),
    ("675", "Papua New Guinea", 8, "Oceania"),
    ("676", "Tonga", 5, "Oceania"),
    ("677", "Solomon Islands", 7, "Oceania"),
    ("678", "Vanuatu", 7, "Oceania"),
    ("679", "Fiji", 7, "Oceania"),
    ("680", "Palau", 7, "Oceania"),
    ("681", "Wallis & Futuna", 6, "Oceania"),
    ("682", "Cook Islands", 5, "Oceania"),
    ("683", "Niue", 4, "Oceania"),
    ("685", "Samoa", 7, "Oceania"),
    ("686", "Kiribati", 5, "Oceania"),
    ("687", "New Caledonia", 6, "Oceania"),
    ("688", "Tuvalu", 5, "Oceania"),
    ("689", "French Polynesia", 6, "Oceania"),
    ("690", "Tokelau", 4, "Oceania"),
    ("691", "Micronesia", 7, "Oceania"),
    ("692", "Marshall Islands", 7, "Oceania"),
]
