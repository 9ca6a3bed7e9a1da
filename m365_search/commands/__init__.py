from m365_search.commands.externalconnection_add import SearchExternalConnectionAddCommand

COMMANDS = {
    command.name: command
    for command in (
        SearchExternalConnectionAddCommand(),
    )
}
